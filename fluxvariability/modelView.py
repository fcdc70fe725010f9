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
"""Read-only view on a metabolic model (ModelView)"""

from cobra.util import create_stoichiometric_matrix
from scipy import sparse
from numpy import isnan
from typing import List
from fluxvariability.names import *
from fluxvariability.exceptions import InvalidInput
from fluxvariability.parse_constr import parse_constraints, lineqlist2mat


class ModelView:
    """Plain copy of the data of a metabolic model that an FVA needs

    The view holds the reaction identifiers, the stoichiometric matrix, flux bounds, objective
    coefficients and optimization sense of a cobra.Model, as well as additional linear constraints
    in matrix form. It contains no reference to the model itself, so that it can be passed to
    worker processes.

    Example:
        view = ModelView(model, constraints='EX_o2_e >= -5')

    Args:
        model (cobra.Model):
            A metabolic model that is an instance of the cobra.Model class.

        constraints (optional (str) or (list of str) or (list of [dict,str,float])): (Default: None)
            Additional linear constraints on the reaction rates, e.g.:
            constraints='-EX_o2_e <= 5, ATPM = 20' or
            constraints=[[{'EX_o2_e':-1},'<=',5], [{'ATPM':1},'=',20]]

        osense (optional (str)): (Default: direction of the model objective)
            'maximize' or 'minimize'

    Returns:
        (ModelView):
            A read-only view on the model.
    """

    def __init__(self, model, constraints=None, osense=None):
        self.reaction_ids = model.reactions.list_attr('id')
        self.numr = len(self.reaction_ids)
        if model.metabolites:
            self.S = sparse.csr_matrix(create_stoichiometric_matrix(model))
        else:
            self.S = sparse.csr_matrix((0, self.numr))
        self.lb = [float(r.lower_bound) for r in model.reactions]
        self.ub = [float(r.upper_bound) for r in model.reactions]
        self.c = [float(r.objective_coefficient) for r in model.reactions]
        if osense is None:
            osense = MAXIMIZE if model.objective_direction == 'max' else MINIMIZE
        self.osense = osense
        inconsistent = [r for r, l, u in zip(self.reaction_ids, self.lb, self.ub) if isnan(l) or isnan(u) or l > u]
        if inconsistent:
            raise InvalidInput('Lower bounds exceed upper bounds in reaction(s): ' + ', '.join(inconsistent) + '.')
        # boundary reactions are exempt from loop constraints
        num_mets = sparse.csc_matrix(self.S != 0).sum(axis=0).A1
        self.internal = [bool(n >= 2) for n in num_mets]
        self.constraints = parse_constraints(constraints, self.reaction_ids)
        self.A_ineq, self.b_ineq, self.A_eq, self.b_eq = lineqlist2mat(self.constraints, self.reaction_ids)

    def index(self, rxn_name_list) -> List[int]:
        """Column indices of the given reactions, in the given order"""
        idx = {r: i for i, r in enumerate(self.reaction_ids)}
        unknown = [str(r) for r in rxn_name_list if r not in idx]
        if unknown:
            raise InvalidInput('Reaction(s) not found in the model: ' + ', '.join(unknown) + '.')
        return [idx[r] for r in rxn_name_list]

    def internal_reactions(self) -> List[int]:
        """Indices of internal reactions"""
        return [i for i, v in enumerate(self.internal) if v]

    def coupled_reactions(self) -> List[int]:
        """Indices of reactions in the objective or in additional constraints"""
        A = sparse.vstack((self.A_ineq, self.A_eq), 'csc')
        in_constraints = A.getnnz(axis=0) > 0
        return [i for i, c in enumerate(self.c) if c or in_constraints[i]]
