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
"""Per-reaction flux bounds, heuristics and worker functions of the FVA (BoundSolver)"""

from contextlib import redirect_stdout, redirect_stderr
from io import StringIO
from numpy import nan, isinf
from typing import Dict, List, Tuple
from fluxvariability import MILP_LP, DisableLogger
from fluxvariability.names import *
from fluxvariability.exceptions import PerReactionSolveFailure
from fluxvariability.normRecovery import NormRecovery
import logging


class HeuristicState:
    """Flux bounds of the reactions of one work chunk that were certified without a full solve

    A flux vector of a sub-problem certifies the maximum (minimum) of a pending reaction if the
    reaction carries its upper (lower) bound in this vector and the vector is feasible in the
    sub-problem of the pending reaction, i.e., the loop components of the pending sub-problem
    are a subset of those of the solved one.

    Args:
        problem (FVAProblem):
            The FVA problem.

        targets (list of int):
            Indices of the reactions in the chunk.

        fluxes (bool):
            Whether the sub-problems are built for flux vector recovery.
    """

    def __init__(self, problem, targets, fluxes=False):
        self.problem = problem
        self.keys = {j: problem.key(j, fluxes) for j in targets}
        self.bounds = {}
        for j in targets:
            lb, ub = problem.bounds(self.keys[j])
            self.bounds[j] = (lb[j], ub[j])
        self.certified = {MAXIMIZE: {}, MINIMIZE: {}}

    def pending(self, sense) -> List[int]:
        """Reactions whose bound in the given direction is still unknown and finite in the model"""
        k = 1 if sense == MAXIMIZE else 0
        return [j for j in self.keys if j not in self.certified[sense] and not isinf(self.bounds[j][k])]

    def get(self, j, sense):
        return self.certified[sense].get(j)

    def harvest(self, x, key) -> int:
        """Certify all pending bounds that are attained by the flux vector x of sub-problem key

        Returns:
            (int): The number of newly certified bounds.
        """
        if x is None:
            return 0
        found = 0
        for sense, k in ((MAXIMIZE, 1), (MINIMIZE, 0)):
            for j in self.pending(sense):
                if not self.keys[j] <= key:
                    continue
                bound = self.bounds[j][k]
                if abs(x[j] - bound) <= 1e-9 * max(1.0, abs(bound)):
                    self.certified[sense][j] = (bound, x)
                    found += 1
        return found

    def collapse(self, j, value, x, sense):
        """If the maximum is the lower bound, it is also the minimum (and vice versa)"""
        lb, ub = self.bounds[j]
        if sense == MAXIMIZE and abs(value - lb) <= 1e-9 * max(1.0, abs(lb)):
            self.certified[MINIMIZE].setdefault(j, (lb, x))
        elif sense == MINIMIZE and abs(value - ub) <= 1e-9 * max(1.0, abs(ub)):
            self.certified[MAXIMIZE].setdefault(j, (ub, x))


class BoundSolver:
    """Minimize and maximize the fluxes of single reactions

    The solver keeps one MILP/LP per sub-problem key and only exchanges the objective function
    between subsequent solves.

    Heuristic levels:
        0: every bound is computed with a full solve.
        1: flux vectors of previous solves certify bounds of pending reactions (HeuristicState);
           a maximum at the lower bound also certifies the minimum (and vice versa).
        2: like 1, and the sums of pending fluxes are maximized and minimized once per work
           chunk to certify many bounds at once.
        3: like 2, with the sum optimization repeated while it certifies new bounds.

    Args:
        problem (FVAProblem):
            The FVA problem with optimality constraint.

        solver (str):
            Solver backend.

        solver_params (optional (dict)):
            Parameters forwarded to the solver.

        heuristics (int): (Default: 0)
            Heuristic level 0-3.

        min_norm (optional (str)): (Default: None)
            Secondary objective for flux vectors. No flux vectors are computed if None.

        ref_flux (optional (list of float)):
            Reference flux vector for 'minOrigSol'.

        strict (bool): (Default: False)
            Raise PerReactionSolveFailure instead of reporting nan when a sub-problem fails.

        reference (optional (Tuple[list, frozenset])):
            A feasible flux vector and its sub-problem key, used as first certificate.
    """

    def __init__(self,
                 problem,
                 solver,
                 solver_params=None,
                 heuristics=0,
                 min_norm=None,
                 ref_flux=None,
                 strict=False,
                 reference=None):
        self.problem = problem
        self.solver = solver
        self.solver_params = solver_params
        self.heuristics = heuristics
        self.fluxes = min_norm is not None
        self.strict = strict
        self.reference = reference
        self.lps = {}
        if self.fluxes:
            self.recovery = NormRecovery(problem, min_norm, solver, solver_params, ref_flux)
        else:
            self.recovery = None

    def _lp(self, key):
        if key not in self.lps:
            with DisableLogger():
                lp = MILP_LP(**self.problem.lp_data(key), solver=self.solver, solver_params=self.solver_params)
            lp.prev = []
            self.lps[key] = lp
        return self.lps[key]

    def _optimize(self, key, C) -> Tuple[float, list, str]:
        """Minimize the sum of the index-coefficient pairs C in sub-problem key"""
        lp = self._lp(key)
        lp.set_objective_idx(C + [[i, 0.0] for i in lp.prev])
        lp.prev = [c[0] for c in C]
        x, min_cx, status = lp.solve()
        return min_cx, x[:self.problem.numr], status

    def solve_bound(self, j, sense) -> Tuple[float, list]:
        """Minimum or maximum flux of reaction j

        Returns:
            (Tuple[float, list]):
            The flux bound and a flux vector attaining it. If the sub-problem fails, nan and None
            are returned (or PerReactionSolveFailure is raised in strict mode).
        """
        sig = -1.0 if sense == MAXIMIZE else 1.0
        min_cx, x, status = self._optimize(self.problem.key(j, self.fluxes), [[j, sig]])
        if status in [OPTIMAL, TIME_LIMIT_W_SOL]:
            return sig * min_cx, x
        reaction = self.problem.view.reaction_ids[j]
        if status == UNBOUNDED:
            message = 'The flux of the reaction is unbounded.'
        else:
            message = 'The flux bound of the reaction could not be determined (status: ' + str(status) + ').'
        if self.strict:
            raise PerReactionSolveFailure(message, reaction=reaction, sense=sense, method=self.problem.method)
        logging.warning(message + ' Reaction: ' + reaction + ', ' + sense + '. Reporting nan.')
        return nan, None

    def _prepass(self, state):
        """Certify bounds by optimizing the sums of pending fluxes"""
        while True:
            found = 0
            for sense in (MAXIMIZE, MINIMIZE):
                pending = state.pending(sense)
                if not pending:
                    continue
                sig = -1.0 if sense == MAXIMIZE else 1.0
                key = frozenset().union(*[state.keys[j] for j in pending])
                _, x, status = self._optimize(key, [[j, sig] for j in pending])
                if status == OPTIMAL:
                    found += state.harvest(x, key)
            logging.debug('Heuristic pre-pass certified ' + str(found) + ' bound(s).')
            if self.heuristics < 3 or not found:
                break

    def compute(self, chunk) -> List[Tuple]:
        """Flux ranges (and flux vectors) of a chunk of reactions

        Args:
            chunk (list of (int, int)):
                Pairs of (position in the result, reaction index).

        Returns:
            (list of tuples):
            (position, minimum, maximum, minimizing flux vector, maximizing flux vector)
        """
        targets = [j for _, j in chunk]
        state = HeuristicState(self.problem, targets, self.fluxes)
        if self.heuristics >= 1 and self.reference is not None:
            state.harvest(*self.reference)
        if self.heuristics >= 2:
            self._prepass(state)
        results = []
        for pos, j in chunk:
            bound = {}
            for sense in (MAXIMIZE, MINIMIZE):
                certificate = state.get(j, sense) if self.heuristics >= 1 else None
                if certificate is not None:
                    value, x = certificate
                else:
                    value, x = self.solve_bound(j, sense)
                    if self.heuristics >= 1 and x is not None:
                        state.harvest(x, self.problem.key(j, self.fluxes))
                if self.heuristics >= 1 and x is not None:
                    state.collapse(j, value, x, sense)
                if self.recovery is not None:
                    x = self.recovery.recover(j, sense, value, x) if x is not None else None
                bound[sense] = (value, x)
            results += [(pos, bound[MINIMIZE][0], bound[MAXIMIZE][0], bound[MINIMIZE][1], bound[MAXIMIZE][1])]
        return results


def fva_worker_init(problem, solver, solver_params, heuristics, min_norm, ref_flux, strict, reference):
    """Helper function for parallel FVA

    Initialize the bound solver that is used iteratively. Is executed on workers, not on main thread.
    """
    global fva_glob
    # redirect output to empty stream. Perhaps avoids some multithreading issues
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
        fva_glob = BoundSolver(problem, solver, solver_params, heuristics, min_norm, ref_flux, strict, reference)


def fva_worker_compute(chunk) -> List[Tuple]:
    """Helper function for parallel FVA

    Compute the flux ranges of a chunk of reactions. Is executed on workers, not on main thread.
    """
    global fva_glob
    with redirect_stdout(StringIO()), redirect_stderr(StringIO()):
        return fva_glob.compute(chunk)
