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
"""Flux variability analysis with optional loop exclusion and secondary objectives"""

import numpy as np
from numpy import nan, isnan
from typing import List
from fluxvariability import avail_qp_solvers
from fluxvariability.names import *
from fluxvariability.exceptions import InvalidInput, IncompatibleOptions
from fluxvariability.pool import FVAPool
from fluxvariability.lptools import select_solver, optimality_threshold, baseline_optimum
from fluxvariability.modelView import ModelView
from fluxvariability.looplessConstraints import build_loop_exclusion
from fluxvariability.fvaProblem import FVAProblem
from fluxvariability.boundSolver import fva_worker_init, fva_worker_compute
from fluxvariability.fvaOptions import FVAOptions
from fluxvariability.fvaResult import FVAResult
import logging


def flux_variability(model, **kwargs) -> FVAResult:
    """Flux Variability Analysis (FVA) with optional loop exclusion

    For every requested reaction, the minimal and maximal flux is determined under the
    constraint that the objective of the model attains at least opt_percentage percent of
    its optimum. Internal flux cycles can be excluded with one of several loop exclusion
    methods, and flux vectors attaining the bounds can be selected with a secondary objective.

    Example:
        result = flux_variability(model, opt_percentage=95, rxn_name_list=['PGI', 'PFK'], method='LLC-NS')
        flux_ranges = result.to_frame()

    Args:
        model (cobra.Model):
            A metabolic model that is an instance of the cobra.Model class.

        opt_percentage (optional (float)): (Default: 90)
            Percentage of the optimal objective value that must be attained.

        osense (optional (str)): (Default: direction of the model objective)
            'maximize' or 'minimize'

        rxn_name_list (optional (str or list of str)): (Default: all reactions)
            Reactions whose flux ranges are computed.

        print_level (optional (int)): (Default: 0)
            0: progress is logged on the DEBUG level, >= 1: on the INFO level.

        allow_loops (optional (bool)): (Default: True)
            If False and no method is given, loops are excluded with the method 'original'.

        method (optional (str)): (Default: None)
            Loop exclusion method: 'none', 'original', 'fastSNP', 'LLC-NS' or 'LLC-EFM'.

        heuristics (optional (int)): (Default: 0)
            Heuristic level 0-3 to reduce the number of solves.

        min_norm (optional (str)): (Default: None)
            Secondary objective of the flux vectors: 'FBA', '0-norm', '1-norm', '2-norm' or 'minOrigSol'.

        ref_flux (optional (list of float)): (Default: reference flux vector)
            Reference flux vector for 'minOrigSol'.

        solver (optional (str)):
            The solver that should be used for FVA.

        solver_params (optional (dict)):
            Parameters forwarded to the solver, e.g., {'time_limit': 60}.

        threads (optional (int)): (Default: 1)
            Number of worker processes.

        strict (optional (bool)): (Default: False)
            Abort with PerReactionSolveFailure if a single sub-problem fails.

        constraints (optional (str) or (list of str) or (list of [dict,str,float])): (Default: None)
            List of *linear* constraints to be applied on top of the model, e.g.:
            constraints='-EX_o2_e <= 5, ATPM = 20' or
            constraints=[[{'EX_o2_e':-1},'<=',5], [{'ATPM':1},'=',20]]

        return_fluxes (optional (bool)): (Default: False)
            Return flux vectors (with 'FBA' as secondary objective if min_norm is not set).

    Returns:
        (FVAResult):
            Minimal and maximal fluxes of the requested reactions in the requested order and,
            optionally, flux vectors attaining them.
    """
    options = FVAOptions(**kwargs)
    log = logging.info if options[PRINT_LEVEL] else logging.debug
    solver = select_solver(options[SOLVER], model)
    method = options[METHOD]
    min_norm = options[MIN_NORM]
    if min_norm == TWO_NORM and solver not in avail_qp_solvers:
        raise IncompatibleOptions('The secondary objective "' + TWO_NORM + '" requires a solver for quadratic '
                                  'problems, but "' + solver + '" is selected.',
                                  method=method)
    if min_norm == MIN_ORIG_SOL and method == ORIGINAL:
        raise IncompatibleOptions('The secondary objective "' + MIN_ORIG_SOL + '" cannot be combined with loop '
                                  'exclusion by the method "' + ORIGINAL + '".',
                                  method=method)

    view = ModelView(model, options[CONSTRAINTS], options[OSENSE])
    if options[RXN_NAME_LIST] is None:
        rxn_name_list = view.reaction_ids
    else:
        rxn_name_list = options[RXN_NAME_LIST]
    targets = view.index(rxn_name_list)
    ref_flux = options[REF_FLUX]
    if ref_flux is not None and len(ref_flux) != view.numr:
        raise InvalidInput('"' + REF_FLUX + '" must contain one flux value per model reaction (' + str(view.numr) + ').')

    log('Building loop exclusion constraints (method: ' + method + ').')
    loops = build_loop_exclusion(view, method, solver, options[SOLVER_PARAMS])
    problem = FVAProblem(view, loops)
    opt, x_ref = baseline_optimum(problem, solver, options[SOLVER_PARAMS])
    threshold = optimality_threshold(opt, options[OPT_PERCENTAGE], view.osense)
    log('Optimal objective value: ' + str(opt) + ', threshold: ' + str(threshold) + '.')
    problem = problem.with_threshold(threshold)
    if min_norm == MIN_ORIG_SOL and ref_flux is None:
        ref_flux = x_ref
    reference = (x_ref, problem.objective_key())

    threads = min(options[THREADS], len(targets)) if targets else 1
    work = list(enumerate(targets))
    chunk_size = max(1, len(work) // threads)
    chunks = [work[i:i + chunk_size] for i in range(0, len(work), chunk_size)]
    initargs = (problem, solver, options[SOLVER_PARAMS], options[HEURISTICS], min_norm, ref_flux, options[STRICT],
                reference)
    results = []
    log('Computing flux ranges of ' + str(len(targets)) + ' reaction(s) with ' + str(threads) + ' worker(s).')
    if threads > 1:
        with FVAPool(threads, initializer=fva_worker_init, initargs=initargs) as pool:
            for chunk_result in pool.imap_unordered(fva_worker_compute, chunks):
                results += chunk_result
                log('Finished ' + str(len(results)) + ' of ' + str(len(targets)) + ' reaction(s).')
    else:
        fva_worker_init(*initargs)
        for chunk in chunks:
            results += fva_worker_compute(chunk)
            log('Finished ' + str(len(results)) + ' of ' + str(len(targets)) + ' reaction(s).')
    # restore the order of the requested reactions
    results.sort(key=lambda r: r[0])

    minimum = [cut_off(r[1]) for r in results]
    maximum = [cut_off(r[2]) for r in results]
    v_min = None
    v_max = None
    if min_norm is not None:
        v_min = flux_matrix([r[3] for r in results], view.numr)
        v_max = flux_matrix([r[4] for r in results], view.numr)
    return FVAResult(rxn_name_list,
                     view.reaction_ids,
                     minimum,
                     maximum,
                     v_min=v_min,
                     v_max=v_max,
                     objective_value=opt,
                     reference_flux=[cut_off(v) for v in x_ref],
                     loop_method=method,
                     min_norm=min_norm)


def cut_off(v) -> float:
    """Report values with an absolute value below 1e-11 as 0.0"""
    v = float(v)
    if isnan(v) or abs(v) >= 1e-11:
        return v
    return 0.0


def flux_matrix(vectors, numr) -> np.ndarray:
    """Flux vectors as columns of a matrix, nan columns for missing vectors"""
    V = np.full((numr, len(vectors)), nan)
    for i, x in enumerate(vectors):
        if x is not None:
            V[:, i] = [cut_off(v) for v in x]
    return V
