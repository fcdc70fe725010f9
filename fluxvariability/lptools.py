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
"""Linear programming helpers: solver selection, reference optimum and optimality threshold"""

from cobra import Configuration
from re import search
from numpy import floor, ceil, inf
from typing import Tuple
from fluxvariability import avail_solvers, MILP_LP
from fluxvariability.names import *
from fluxvariability.exceptions import BaselineInfeasible, BaselineUnbounded
import logging


def select_solver(solver=None, model=None) -> str:
    """Select a solver for subsequent MILP/LP computations

    This function will determine the solver to be used for subsequent MILP/LP computations. If no
    argument is provided, this function will try to determine the currently selected solver from the
    COBRA configuration. If unavailable, the solver will be inferred from the packages available at
    package initialization and the first of them in alphabetical order is returned.
    One may provide a solver or a model manually. This function then checks if the selected solver
    is available, or else, if the solver indicated in the model is available. If both arguments are
    specified, the function prefers 'solver' over 'model'.

    Example:
        solver = select_solver('gurobi')

    Args:
        solver (optional (str)):
            A user preferred solver, that should be checked for availability: 'glpk' or 'gurobi'.

        model (optional (cobra.Model)):
            A metabolic model that is an instance of the cobra.Model class. The function will try to
            dertermine the selected solver by accessing the field model.solver.

    Returns:
        (str):
            The selected solver name as a str ('glpk' or 'gurobi').
    """
    if not avail_solvers:
        raise Exception('No solver available. Please ensure that one of the following '\
                        'solvers is avaialable in your Python environment: Gurobi, GLPK')
    fallback = sorted(avail_solvers)[0]
    # first try to use selected solver
    if solver:
        if solver in avail_solvers:
            return solver
        logging.warning('Selected solver ' + solver + ' not available. Using ' + fallback + " instead.")
    # if no solver was defined, use solver specified in model
    if hasattr(model, 'solver') and hasattr(model.solver, 'interface'):
        solver = search('(' + '|'.join(avail_solvers) + ')', model.solver.interface.__name__)
        if solver is not None:
            return solver[0]
        logging.warning('Solver specified in model (' + model.solver.interface.__name__ + ') unavailable')
    # if no solver specified in model, use solver from cobra configuration
    cobra_conf = Configuration()
    if hasattr(cobra_conf, 'solver') and hasattr(cobra_conf.solver, '__name__'):
        solver = search('(' + '|'.join(avail_solvers) + ')', cobra_conf.solver.__name__)
        if solver is not None:
            return solver[0]
        logging.warning('Solver specified in cobra config (' + cobra_conf.solver.__name__ + ') unavailable')
    return fallback


def optimality_threshold(opt, opt_percentage, osense) -> float:
    """Objective value that every sub-problem of an FVA must still attain

    The optimum is relaxed by (100 - opt_percentage) percent of its absolute value and the result is
    rounded away from the optimum to 9 decimals, so that the reference flux vector stays feasible.

    Example:
        optimality_threshold(2.0, 90, 'maximize') -> 1.8
        optimality_threshold(-2.0, 90, 'maximize') -> -2.2

    Args:
        opt (float):
            Optimal objective value.

        opt_percentage (float):
            Percentage of the optimum that must be attained, 0 < opt_percentage <= 100.

        osense (str):
            'maximize' or 'minimize'

    Returns:
        (float):
            Lower bound (maximize) or upper bound (minimize) of the objective value.
    """
    slack = (1.0 - opt_percentage / 100.0) * abs(opt)
    if osense == MAXIMIZE:
        return floor_dec(opt - slack, 9)
    else:
        return ceil_dec(opt + slack, 9)


def baseline_optimum(problem, solver, solver_params=None) -> Tuple[float, list]:
    """Solve the reference optimization of an FVA problem

    The objective of the model is optimized once under the model constraints, the additional
    constraints and the loop exclusion constraints that apply to the objective reactions.

    Args:
        problem (FVAProblem):
            The FVA problem without optimality constraint.

        solver (str):
            Solver backend.

        solver_params (optional (dict)):
            Parameters forwarded to the solver.

    Returns:
        (Tuple[float, list]):
            The optimal objective value and an optimal flux vector.
    """
    view = problem.view
    key = problem.objective_key()
    sig = -1.0 if problem.osense == MAXIMIZE else 1.0
    lp_data = problem.lp_data(key)
    c = [sig * v for v in view.c] + [0.0] * (len(lp_data['lb']) - view.numr)
    lp = MILP_LP(c=c, **lp_data, solver=solver, solver_params=solver_params)
    x, min_cx, status = lp.solve()
    if status == UNBOUNDED:
        raise BaselineUnbounded('The objective of the model is unbounded.', sense=problem.osense, method=problem.method)
    if status not in [OPTIMAL, TIME_LIMIT_W_SOL]:
        raise BaselineInfeasible('The reference optimization has no solution (status: ' + str(status) + ').',
                                 sense=problem.osense,
                                 method=problem.method)
    opt = sig * min_cx
    logging.debug('Reference optimum: ' + str(opt))
    return opt, x[:view.numr]


def ceil_dec(v, n):
    """Round up v to n decimals"""
    if abs(v) == inf:
        return v
    return ceil(v * (10**n)) / (10**n)


def floor_dec(v, n):
    """Round down v to n decimals"""
    if abs(v) == inf:
        return v
    return floor(v * (10**n)) / (10**n)
