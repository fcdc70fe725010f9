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
"""Secondary objectives: selection of a representative flux vector for a flux bound (NormRecovery)"""

import numpy as np
from scipy import sparse
from fluxvariability import MILP_LP, DisableLogger
from fluxvariability.names import *
from fluxvariability.fvaProblem import pad_columns
import logging

# fluxes below this absolute value count as zero
NONZERO_TOL = 1e-8
# reweighting of the 0-norm approximation
MAX_REWEIGHT = 10
REWEIGHT_EPS = 1e-4


class NormRecovery:
    """Re-solve a sub-problem with a secondary objective after its flux bound is known

    The flux of the optimized reaction is pinned to the bound that was found (within a relative
    tolerance of 1e-9) and a flux vector is chosen according to min_norm:

        'FBA': the flux vector of the bound solve itself
        '1-norm': minimize sum(|v|)
        '0-norm': minimize the number of non-zero fluxes, approximated by an iteratively
                  reweighted 1-norm. The sparsest vector found is returned, including the flux
                  vector of the bound solve.
        '2-norm': minimize sum(v^2) (requires a QP-capable solver)
        'minOrigSol': minimize sum(|v - ref_flux|)

    Absolute values are modeled with auxiliary variables t >= v - ref, t >= ref - v behind the
    variables of the sub-problem. One problem is built per sub-problem key and reused.

    Args:
        problem (FVAProblem):
            The FVA problem.

        min_norm (str):
            The secondary objective.

        solver (str):
            Solver backend.

        solver_params (optional (dict)):
            Parameters forwarded to the solver.

        ref_flux (optional (list of float)):
            Reference flux vector for 'minOrigSol'.
    """

    def __init__(self, problem, min_norm, solver, solver_params=None, ref_flux=None):
        self.problem = problem
        self.min_norm = min_norm
        self.solver = solver
        self.solver_params = solver_params
        if min_norm == MIN_ORIG_SOL:
            self.ref_flux = [float(v) for v in ref_flux]
        else:
            self.ref_flux = [0.0] * problem.numr
        self.lps = {}

    def _lp(self, key):
        if key in self.lps:
            return self.lps[key]
        numr = self.problem.numr
        lp_data = self.problem.lp_data(key)
        numvars = len(lp_data['lb'])
        A_ineq = lp_data.pop('A_ineq')
        b_ineq = lp_data.pop('b_ineq')
        Q = None
        if self.min_norm == TWO_NORM:
            c = [0.0] * numvars
            Q = sparse.diags([1.0] * numr + [0.0] * (numvars - numr), format='csr')
            A_ineq = pad_columns(A_ineq, numvars)
        else:
            # t >= v - ref, t >= ref - v
            I_v = sparse.identity(numr, format='csr')
            I_v = pad_columns(I_v, numvars)
            I_t = sparse.identity(numr, format='csr')
            A_ineq = sparse.vstack((pad_columns(A_ineq, numvars + numr), sparse.hstack(
                (I_v, -I_t)), sparse.hstack((-I_v, -I_t))), 'csr')
            b_ineq = b_ineq + self.ref_flux + [-v for v in self.ref_flux]
            c = [0.0] * numvars + [1.0] * numr
            lp_data['A_eq'] = pad_columns(lp_data['A_eq'], numvars + numr)
            lp_data['lb'] = lp_data['lb'] + [0.0] * numr
            lp_data['ub'] = lp_data['ub'] + [np.inf] * numr
            lp_data['vtype'] = lp_data['vtype'] + 'C' * numr
            if lp_data['indic_constr'] is not None:
                lp_data['indic_constr'] = lp_data['indic_constr'].resize(numvars + numr)
            numvars = numvars + numr
        # last inequality pins the optimized flux
        pin_idx = A_ineq.shape[0]
        A_ineq = sparse.vstack((A_ineq, sparse.csr_matrix((1, numvars))), 'csr')
        b_ineq = b_ineq + [0.0]
        with DisableLogger():
            lp = MILP_LP(c=c,
                         Q=Q,
                         A_ineq=A_ineq,
                         b_ineq=b_ineq,
                         **lp_data,
                         solver=self.solver,
                         solver_params=self.solver_params)
        lp.pin_idx = pin_idx
        self.lps[key] = lp
        return lp

    def recover(self, j, sense, value, x) -> list:
        """Flux vector that attains the bound value of reaction j

        Args:
            j (int):
                Index of the optimized reaction.

            sense (str):
                'maximize' or 'minimize'

            value (float):
                The flux bound of reaction j.

            x (list of float):
                The flux vector of the bound solve.

        Returns:
            (list of float or None):
            The flux vector, or None if the secondary problem could not be solved.
        """
        if self.min_norm == FBA:
            return x
        numr = self.problem.numr
        lp = self._lp(self.problem.key(j, True))
        tol = 1e-9 * max(1.0, abs(value))
        a = [0.0] * len(lp.c)
        if sense == MAXIMIZE:
            a[j] = -1.0
            b = -(value - tol)
        else:
            a[j] = 1.0
            b = value + tol
        lp.set_ineq_constraint(lp.pin_idx, a, b)
        if self.min_norm == ZERO_NORM:
            return self._reweighted(lp, x)
        y, _, status = lp.solve()
        if status not in [OPTIMAL, TIME_LIMIT_W_SOL]:
            logging.warning('Secondary objective ' + self.min_norm + ' could not be solved for reaction ' +
                            self.problem.view.reaction_ids[j] + ' (' + sense + ', status: ' + str(status) + ').')
            return None
        return y[:numr]

    def _reweighted(self, lp, x):
        """Iteratively reweighted 1-norm minimization"""
        numr = self.problem.numr
        numvars = len(lp.c) - numr
        best = x
        best_nnz = count_nonzero(x) if x is not None else np.inf
        weights = [1.0] * numr
        support = None
        for _ in range(MAX_REWEIGHT):
            lp.set_objective([0.0] * numvars + weights)
            y, _, status = lp.solve()
            if status not in [OPTIMAL, TIME_LIMIT_W_SOL]:
                break
            y = y[:numr]
            nnz = count_nonzero(y)
            if nnz < best_nnz:
                best = y
                best_nnz = nnz
            new_support = [abs(v) > NONZERO_TOL for v in y]
            if new_support == support:
                break
            support = new_support
            weights = [1.0 / (abs(v) + REWEIGHT_EPS) for v in y]
        return best


def count_nonzero(x) -> int:
    """Number of fluxes with an absolute value above 1e-8"""
    return sum(1 for v in x if abs(v) > NONZERO_TOL)
