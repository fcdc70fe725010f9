#!/usr/bin/env python3
#
# Copyright 2022 Max Planck Insitute Magdeburg
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
#
#
#
"""Functions for parsing additional linear constraints on reaction fluxes"""

from typing import List, Tuple
from scipy import sparse
from fluxvariability.exceptions import InvalidInput
import re


def parse_constraints(constr, reaction_ids) -> list:
    """Parses linear constraints written as strings

    Parses one or more *linear* constraints written as strings or passed in list form.

    Args:
        constr (str or list of str or list of [dict,str,float]):
            (List of) constraints in string form.
            E.g.: ['r1 + 3*r2 = 0.3', '-5*r3 -r4 <= -0.5'] or
            '1.0 r1 + 3.0*r2 =0.3, -r4 - 5*r3 <= -0.5' or
            [[{'r1':1.0,'r2':3.0},'=',0.3],[{'r3':-5.0,'r4':-1.0},'<=',-0.5]]

        reaction_ids (list of str):
            List of reaction identifiers.

    Returns:
        (List of lists):
        List of constraints. Each constraint is a list of three elements.
        E.g.: [[{'r1':1.0,'r2':3.0},'=',0.3],[{'r3':-5.0,'r4':-1.0},'<=',-0.5],...]
    """
    if not constr:
        return []
    if type(constr) is str:
        constr = re.split(r"\n|,", constr)
    if type(constr) is tuple or (type(constr) is list and type(constr[0]) is dict):
        constr = [constr]
    constr = [list(c) if type(c) is tuple else c for c in constr]
    parsed = []
    for c in constr:
        if type(c) is str:
            parsed += lineq2list([c], reaction_ids)
        elif type(c) is list and len(c) == 3 and type(c[0]) is dict:
            unknown = [k for k in c[0] if k not in reaction_ids]
            if unknown:
                raise InvalidInput("Constraint refers to unknown reaction(s): " + ", ".join(unknown) + ".")
            if c[1] not in ('<=', '=', '>='):
                raise InvalidInput("Unknown (in)equality sign '" + str(c[1]) + "'.")
            parsed.append([dict(c[0]), c[1], float(c[2])])
        else:
            raise InvalidInput("Constraint " + str(c) + " is neither a string nor of the form [dict,sign,float].")
    return parsed


def lineq2list(equations, reaction_ids) -> List:
    """Translates *linear* (in)equalities to list format: [lhs,sign,rhs]

    equations = ['2*c - b +3*a <= 2','c - b = 0'], reaction_ids = ['a','b','c']

    is translated to [[{'a':3.0,'b':-1.0,'c':2.0},'<=',2.0],[{'b':-1.0,'c':1.0},'=',0.0]]
    """
    D = []
    for equation in equations:
        if not equation.strip():
            continue
        parts = re.split('<=|>=|=', equation)
        if len(parts) != 2:
            raise InvalidInput("Equations must contain exactly one (in)equality sign: <=,=,>=. Found: '" + equation +
                               "'.")
        lhs, rhs = parts
        eq_sign = re.search('<=|>=|=', equation)[0]
        try:
            rhs = float(rhs)
        except ValueError:
            raise InvalidInput("Right hand side must be a float number. Found: '" + rhs.strip() + "'.")
        D.append([linexpr2dict(lhs, reaction_ids), eq_sign, rhs])
    return D


def linexpr2dict(expr, reaction_ids) -> dict:
    """Translates a linear expression into a dictionary

    E.g.: input: expr='2 R3 - R1', reaction_ids=['R1', 'R2', 'R3', 'R4'] translates to a dict D={'R1':-1.0, 'R3': 2.0}

    Args:
        expr (str):
            Linear expression as a character string, e.g.: expr='2 R3 - R1'

        reaction_ids (list of str):
            List of reaction identifiers that are used to recognize variables in the input

    Returns:
        (dict):
        A dictionary that contains the variable names and the variable coefficients in the linear expression
    """
    # separate signs and multiplication symbols from numbers and identifiers
    tokens = re.sub(r'\*', ' ', expr)
    tokens = re.sub(r'(^|\s)([+-])(?=\S)', r'\1\2 ', tokens).split()
    D = {}
    sign = 1.0
    coeff = None
    for t in tokens:
        if t in ('+', '-'):
            if coeff is not None:
                raise InvalidInput("Expression invalid. A number must be followed by a reaction identifier.")
            sign = sign * (-1.0 if t == '-' else 1.0)
        elif t in reaction_ids:
            if t in D:
                raise InvalidInput("Reaction identifiers may only occur once in each linear expression.")
            D[t] = sign * (1.0 if coeff is None else coeff)
            sign = 1.0
            coeff = None
        elif re.match(r'^\d*\.?\d*(e[+-]?\d+)?$', t, re.IGNORECASE) and re.search(r'\d', t):
            if coeff is not None:
                raise InvalidInput("Expression invalid. The expression contains at least two numbers in a row.")
            coeff = float(t)
        else:
            raise InvalidInput("Expression invalid. Unknown identifier " + t + ".")
    if coeff is not None:
        raise InvalidInput("Expression invalid. A number must be followed by a reaction identifier.")
    return D


def lineqlist2mat(D, reaction_ids) -> Tuple[sparse.csr_matrix, List, sparse.csr_matrix, List]:
    """Translates *linear* (in)equalities presented in the list of lists format to matrices

    The reaction list defines the order of variables and thus the columns of the resulting matrices,
    the order of (in)equalities is preserved. As an example, take the input:

    D = [[{'a':3.0,'b':-1.0,'c':2.0},'<=',2.0],[{'b':-1.0,'c':1.0},'=',0.0], [{'a':-1,'b':2.0},'>=',-2.0]]

    This will be translated to the form A_ineq * x <= b_ineq, A_eq * x = b_eq and hence to

    A_ineq = sparse.csr_matrix([[3,-1,2],[1,-2,0]]), b_ineq = [2,2],
    A_eq = sparse.csr_matrix([[0,-1,1]]), b_eq = [0]

    Returns:
        (Tuple):
        A_ineq, b_ineq, A_eq, b_eq.
    """
    numr = len(reaction_ids)
    idx = {r: i for i, r in enumerate(reaction_ids)}
    rows = {'<=': ([], [], [], []), '=': ([], [], [], [])}
    for d in D:
        lhs, eq_sign, rhs = d
        sig = -1.0 if eq_sign == '>=' else 1.0
        r, c, v, b = rows['=' if eq_sign == '=' else '<=']
        for k, coeff in lhs.items():
            r.append(len(b))
            c.append(idx[k])
            v.append(sig * coeff)
        b.append(sig * rhs)
    A_ineq = sparse.csr_matrix((rows['<='][2], (rows['<='][0], rows['<='][1])), shape=(len(rows['<='][3]), numr))
    A_eq = sparse.csr_matrix((rows['='][2], (rows['='][0], rows['='][1])), shape=(len(rows['='][3]), numr))
    return A_ineq, rows['<='][3], A_eq, rows['='][3]
