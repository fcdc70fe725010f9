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
"""Class: FVA problem (FVAProblem)"""

from scipy import sparse
from typing import Dict, List, Tuple
from fluxvariability.names import *


class FVAProblem:
    """The shared, read-only data of one flux variability analysis

    An FVAProblem combines the model (ModelView), the loop exclusion constraints (LoopExclusion)
    and the optimality constraint. It translates these into the matrices of the sub-problems
    that are solved for the individual reactions. Sub-problems are identified by a key, the set
    of loop components that they constrain. All sub-problems have the variable layout
    [v | a | G]: the fluxes, followed by the indicators and pseudo energies of the constrained
    reactions.

    Example:
        problem = FVAProblem(view, loops).with_threshold(0.9)

    Args:
        view (ModelView):
            The model.

        loops (LoopExclusion):
            The loop exclusion constraints.

        threshold (optional (float)): (Default: None)
            Minimal (maximize) or maximal (minimize) objective value. No optimality constraint
            is added if threshold is None.
    """

    def __init__(self, view, loops, threshold=None):
        self.view = view
        self.loops = loops
        self.threshold = threshold
        self.osense = view.osense
        self.method = loops.method
        # loop components that the objective and the additional constraints act on
        self.coupled = loops.key(view.coupled_reactions())

    def with_threshold(self, threshold):
        """Copy of the problem with the optimality constraint objective >= threshold (maximize)"""
        return FVAProblem(self.view, self.loops, threshold)

    @property
    def numr(self):
        return self.view.numr

    def key(self, j, fluxes=False) -> frozenset:
        """Loop components constrained when optimizing the flux of reaction j

        Besides the components of j, the components of the objective reactions and of reactions
        in additional constraints are constrained. When flux vectors are requested, all components
        are constrained, so that the returned flux vectors are loop-free.
        """
        if fluxes:
            return self.loops.key()
        return self.loops.key([j]) | self.coupled

    def objective_key(self) -> frozenset:
        """Loop components constrained in the reference optimization"""
        return self.coupled

    def bounds(self, key) -> Tuple[List, List]:
        """Flux bounds in the sub-problem key"""
        return self.loops.cap_bounds(key, self.view.lb, self.view.ub)

    def lp_data(self, key) -> Dict:
        """Matrices and vectors of the sub-problem key

        Returns:
            (dict):
            A_ineq, b_ineq, A_eq, b_eq, lb, ub, vtype, indic_constr and M, as accepted by MILP_LP.
        """
        view = self.view
        numr = view.numr
        A_eq_ll, b_eq_ll, indic_constr, lb_ll, ub_ll, vtype_ll = self.loops.loop_law(key, numr)
        numvars = numr + len(lb_ll)
        lb, ub = self.bounds(key)
        # model, additional constraints and loop law
        A_ineq = view.A_ineq
        b_ineq = list(view.b_ineq)
        if self.threshold is not None:
            if self.osense == MAXIMIZE:
                A_ineq = sparse.vstack((A_ineq, sparse.csr_matrix([-c for c in view.c])))
                b_ineq += [-self.threshold]
            else:
                A_ineq = sparse.vstack((A_ineq, sparse.csr_matrix(view.c)))
                b_ineq += [self.threshold]
        A_ineq = pad_columns(A_ineq, numvars)
        A_eq = sparse.vstack((pad_columns(view.S, numvars), pad_columns(view.A_eq, numvars), A_eq_ll), 'csr')
        b_eq = [0.0] * view.S.shape[0] + list(view.b_eq) + b_eq_ll
        return {
            'A_ineq': A_ineq,
            'b_ineq': b_ineq,
            'A_eq': A_eq,
            'b_eq': b_eq,
            'lb': lb + lb_ll,
            'ub': ub + ub_ll,
            'vtype': 'C' * numr + vtype_ll,
            'indic_constr': indic_constr,
            'M': self.loops.big_m() if indic_constr is not None else None,
        }


def pad_columns(A, numvars) -> sparse.csr_matrix:
    """Append empty columns to A up to numvars columns"""
    A = sparse.coo_matrix(A)
    return sparse.csr_matrix((A.data, (A.row, A.col)), shape=(A.shape[0], numvars))
