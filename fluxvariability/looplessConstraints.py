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
"""Loop exclusion: loop law constraints and their precomputation (LoopExclusion)

Flux vectors that contain internal cycles are excluded with the loop law. For every constrained
internal reaction j, a binary direction indicator a_j and a continuous pseudo energy G_j are added:

a_j = 1 -> v_j >= 0 and G_j <= -1
a_j = 0 -> v_j <= 0 and G_j >= 1
N' * G = 0

where N is a basis of the internal cycles. The methods differ in the choice of the constrained
reactions and of N:

    'original': all internal reactions and the full null space of the internal network
    'fastSNP': the reactions in the support of a sparse basis of feasible loops (Fast-SNP)
    'LLC-NS': components of reactions that share Fast-SNP basis vectors, each with the null
              space of its own sub-network. Only the components of the optimized reaction are
              constrained.
    'LLC-EFM': components of reactions that share elementary cycles, the cycles are used as basis.
              Only the components of the optimized reaction are constrained.
"""

import numpy as np
from scipy import sparse
from scipy.linalg import null_space
from scipy.sparse.csgraph import connected_components
from typing import List, Tuple
from fluxvariability import MILP_LP, IndicatorConstraints
from fluxvariability.names import *
from fluxvariability.exceptions import UnsupportedLoopMethod
import logging

# bounds of the pseudo energies G
G_BOUND = 1000.0
# default for infinite flux bounds of constrained reactions
LOOP_BOUND = 1000.0
SEED = 1234
EFM_LIMIT = 500


class LoopExclusion:
    """Precomputed loop exclusion constraints of one FVA call

    A LoopExclusion object is built once per call and shared by all sub-problems. It stores
    the loop components, i.e., sets of internal reactions together with a basis of their cycles.
    Sub-problems select the components they constrain through a key (a frozenset of component
    indices), and loop_law translates a key into variables and constraints.

    Args:
        method (str):
            Loop exclusion method: 'none', 'original', 'fastSNP', 'LLC-NS' or 'LLC-EFM'

        components (list of (list of int, numpy.ndarray)): (Default: [])
            Reaction indices of each component and a cycle basis (one row per reaction).

        localized (bool): (Default: False)
            If True, sub-problems only constrain the components of the optimized reaction.

        loop_bound (float): (Default: 1000)
            Replaces infinite flux bounds of constrained reactions.
    """

    def __init__(self, method, components=None, localized=False, loop_bound=LOOP_BOUND):
        self.method = method
        self.components = [(list(r), np.asarray(N, dtype=float)) for r, N in (components or [])]
        self.localized = localized
        self.loop_bound = float(loop_bound)
        self.component_of = {j: k for k, (rxns, _) in enumerate(self.components) for j in rxns}

    def __repr__(self):
        return 'LoopExclusion(' + self.method + ', ' + str(len(self.components)) + ' component(s), ' + str(
            len(self.component_of)) + ' reaction(s))'

    def key(self, reactions=None) -> frozenset:
        """Components that must be constrained when optimizing the given reactions

        Without reactions, or if the constraints are not localized, all components are returned.
        """
        if reactions is None or not self.localized:
            return frozenset(range(len(self.components)))
        return frozenset(self.component_of[j] for j in reactions if j in self.component_of)

    def constrained_reactions(self, key) -> List[int]:
        return [j for k in sorted(key) for j in self.components[k][0]]

    def loop_law(self, key, numr) -> Tuple[sparse.csr_matrix, list, IndicatorConstraints, list, list, str]:
        """Loop law variables and constraints for the components in key

        The problem is extended by the variables [a | G] behind the numr flux variables.

        Returns:
            (Tuple):
            A_eq, b_eq (N' * G = 0), the indicator constraints and lb, ub, vtype of the new variables.
        """
        rxns = self.constrained_reactions(key)
        m = len(rxns)
        numvars = numr + 2 * m
        if not m:
            return sparse.csr_matrix((0, numvars)), [], None, [], [], ''
        # N' * G = 0
        row = []
        col = []
        val = []
        pos = 0
        numrows = 0
        for k in sorted(key):
            N = self.components[k][1]
            r, c = np.nonzero(N)
            row += (numrows + c).tolist()
            col += (numr + m + pos + r).tolist()
            val += N[r, c].tolist()
            pos += N.shape[0]
            numrows += N.shape[1]
        A_eq = sparse.csr_matrix((val, (row, col)), shape=(numrows, numvars))
        # indicators
        binv = []
        row = []
        col = []
        val = []
        b = []
        indicval = []
        for i, j in enumerate(rxns):
            a_col = numr + i
            g_col = numr + m + i
            for coeff_v, coeff_g, ival in ((-1.0, 1.0, 1), (1.0, -1.0, 0)):
                # a_j = ival -> coeff_v * v_j <= 0
                row += [len(b)]
                col += [j]
                val += [coeff_v]
                b += [0.0]
                # a_j = ival -> coeff_g * G_j <= -1
                row += [len(b)]
                col += [g_col]
                val += [coeff_g]
                b += [-1.0]
                binv += [a_col, a_col]
                indicval += [ival, ival]
        A_ic = sparse.csr_matrix((val, (row, col)), shape=(len(b), numvars))
        indic_constr = IndicatorConstraints(binv, A_ic, b, 'L' * len(b), indicval)
        lb = [0.0] * m + [-G_BOUND] * m
        ub = [1.0] * m + [G_BOUND] * m
        vtype = 'B' * m + 'C' * m
        return A_eq, [0.0] * A_eq.shape[0], indic_constr, lb, ub, vtype

    def cap_bounds(self, key, lb, ub) -> Tuple[list, list]:
        """Replace infinite bounds of the constrained reactions by +/- loop_bound"""
        lb = list(lb)
        ub = list(ub)
        for j in self.constrained_reactions(key):
            lb[j] = max(lb[j], -self.loop_bound)
            ub[j] = min(ub[j], self.loop_bound)
        return lb, ub

    def big_m(self) -> float:
        return max(G_BOUND, self.loop_bound) + 1.0


def build_loop_exclusion(view, method, solver=None, solver_params=None, seed=SEED, efm_limit=EFM_LIMIT) -> LoopExclusion:
    """Precompute the loop exclusion constraints of a model

    Example:
        loops = build_loop_exclusion(ModelView(model), 'LLC-NS', solver='glpk')

    Args:
        view (ModelView):
            The model.

        method (str):
            'none', 'original', 'fastSNP', 'LLC-NS' or 'LLC-EFM'

        solver (optional (str)):
            Solver used for the Fast-SNP and cycle enumeration problems.

        solver_params (optional (dict)):
            Parameters forwarded to the solver.

        seed (int): (Default: 1234)
            Seed of the random directions of Fast-SNP.

        efm_limit (int): (Default: 500)
            Maximum number of elementary cycles enumerated for 'LLC-EFM'.

    Returns:
        (LoopExclusion):
            The loop exclusion constraints.
    """
    if method not in LOOP_METHODS:
        raise UnsupportedLoopMethod('Unknown loop exclusion method "' + str(method) + '". Use one of: ' +
                                    ', '.join(LOOP_METHODS) + '.',
                                    method=method)
    finite = [abs(v) for v in view.lb + view.ub if np.isfinite(v)]
    loop_bound = max([LOOP_BOUND] + finite)
    if method == LOOPS_ALLOWED:
        return LoopExclusion(method)
    internal = view.internal_reactions()
    S_int = view.S[:, internal]
    if method == ORIGINAL:
        components = []
        if internal:
            N = null_space(S_int.toarray())
            if N.shape[1]:
                components = [(internal, N)]
        loops = LoopExclusion(method, components, False, loop_bound)
    else:
        lb_dir = [-1.0 if view.lb[j] < 0 else 0.0 for j in internal]
        ub_dir = [1.0 if view.ub[j] > 0 else 0.0 for j in internal]
        if method == LLC_EFM:
            cycles = elementary_cycles(S_int, lb_dir, ub_dir, solver, solver_params, efm_limit)
            if cycles is None:
                logging.warning('The enumeration of elementary cycles reached the limit of ' + str(efm_limit) +
                                ' cycles. Loop components are derived from a null space basis instead.')
            else:
                components = [([internal[i] for i in r], N) for r, N in loop_components(cycles, use_as_basis=True)]
                loops = LoopExclusion(method, components, True, loop_bound)
                logging.info(str(loops))
                return loops
        B = fast_snp(S_int, lb_dir, ub_dir, solver, solver_params, seed)
        if method == FASTSNP:
            support = [i for i in range(B.shape[0]) if np.any(B[i, :] != 0)]
            components = [([internal[i] for i in support], B[support, :])] if support else []
            loops = LoopExclusion(method, components, False, loop_bound)
        else:
            components = []
            for r, _ in loop_components(B):
                N = null_space(S_int[:, r].toarray())
                components += [([internal[i] for i in r], N)]
            loops = LoopExclusion(method, components, True, loop_bound)
    logging.info(str(loops))
    return loops


def fast_snp(S, lb_dir, ub_dir, solver=None, solver_params=None, seed=SEED, tol=1e-6) -> np.ndarray:
    """Sparse basis of the feasible internal loops (Fast-SNP)

    Random directions w are projected onto the orthogonal complement of the current basis. If a
    flux vector v in the null space of S with directional bounds lb_dir <= v <= ub_dir has w*v != 0,
    a sparse vector with the same property (minimal 1-norm, at least half of the optimum of w*v)
    is added to the basis. The procedure stops when neither maximization nor minimization of w*v
    finds a new vector.

    Args:
        S (sparse.csr_matrix):
            Stoichiometric matrix of the internal reactions.

        lb_dir, ub_dir (list of float):
            Directions in which the reactions may operate, each -1, 0 or 1.

    Returns:
        (numpy.ndarray):
            The basis vectors as columns.
    """
    m, n = S.shape
    if not n:
        return np.zeros((0, 0))
    rng = np.random.default_rng(seed)
    basis = []
    # maximize/minimize w*v in the null space
    lp = MILP_LP(A_eq=S, b_eq=[0.0] * m, lb=lb_dir, ub=ub_dir, solver=solver, solver_params=solver_params)
    # minimize the 1-norm of v = p - q subject to w*v >= opt/2
    S_pq = sparse.hstack((S, -S), 'csr')
    lp_sparse = MILP_LP(c=[1.0] * (2 * n),
                        A_ineq=sparse.csr_matrix((1, 2 * n)),
                        b_ineq=[0.0],
                        A_eq=S_pq,
                        b_eq=[0.0] * m,
                        lb=[0.0] * (2 * n),
                        ub=[max(u, 0.0) for u in ub_dir] + [max(-l, 0.0) for l in lb_dir],
                        solver=solver,
                        solver_params=solver_params)
    while True:
        w = rng.standard_normal(n)
        if basis:
            Q, _ = np.linalg.qr(np.array(basis).T)
            w = w - Q @ (Q.T @ w)
        w = w / np.linalg.norm(w)
        found = None
        for sig in (-1.0, 1.0):
            lp.set_objective(sig * w)
            _, opt, status = lp.solve()
            opt = sig * opt
            if status == OPTIMAL and sig * opt < -tol:
                # w*v >= opt/2 for sig=-1, w*v <= opt/2 for sig=1
                lp_sparse.set_ineq_constraint(0, np.concatenate((sig * w, -sig * w)).tolist(), sig * opt / 2)
                x, _, status = lp_sparse.solve()
                if status == OPTIMAL:
                    v = np.array(x[:n]) - np.array(x[n:])
                    v[np.abs(v) < 1e-9] = 0.0
                    found = v
                    break
        if found is None:
            break
        basis += [found]
        logging.debug('Fast-SNP: found loop ' + str(len(basis)) + ' with ' + str(np.count_nonzero(found)) + ' reactions.')
    if not basis:
        return np.zeros((n, 0))
    return np.array(basis).T


def elementary_cycles(S, lb_dir, ub_dir, solver=None, solver_params=None, limit=EFM_LIMIT, M=1e3) -> np.ndarray:
    """Enumerate the elementary internal cycles of a network

    Cycles are enumerated in the order of increasing support with a MILP in the variables
    [p | q | y | z] with v = p - q and binaries y (forward) and z (backward):

    S*(p - q) = 0, y <= p <= M*y, z <= q <= M*z, y + z <= 1, sum(y + z) >= 1,
    minimize sum(y + z)

    The support of every found cycle is excluded: sum_(j in supp) y_j + z_j <= |supp| - 1

    Args:
        S (sparse.csr_matrix):
            Stoichiometric matrix of the internal reactions.

        lb_dir, ub_dir (list of float):
            Directions in which the reactions may operate, each -1, 0 or 1.

        limit (int):
            Maximum number of cycles.

    Returns:
        (numpy.ndarray or None):
            The cycles as columns, or None if the limit was reached.
    """
    m, n = S.shape
    if not n:
        return np.zeros((0, 0))
    I = sparse.identity(n, format='csr')
    Z = sparse.csr_matrix((n, n))
    A_ineq = sparse.vstack((
        sparse.hstack((-I, Z, I, Z)),  # y <= p
        sparse.hstack((I, Z, -M * I, Z)),  # p <= M*y
        sparse.hstack((Z, -I, Z, I)),  # z <= q
        sparse.hstack((Z, I, Z, -M * I)),  # q <= M*z
        sparse.hstack((Z, Z, I, I)),  # y + z <= 1
        sparse.hstack((sparse.csr_matrix((1, 2 * n)), sparse.csr_matrix(-np.ones((1, 2 * n))))),  # sum(y + z) >= 1
    ), 'csr')
    b_ineq = [0.0] * (4 * n) + [1.0] * n + [-1.0]
    ub_y = [1.0 if u > 0 else 0.0 for u in ub_dir]
    ub_z = [1.0 if l < 0 else 0.0 for l in lb_dir]
    milp = MILP_LP(c=[0.0] * (2 * n) + [1.0] * (2 * n),
                   A_ineq=A_ineq,
                   b_ineq=b_ineq,
                   A_eq=sparse.hstack((S, -S, sparse.csr_matrix((m, 2 * n))), 'csr'),
                   b_eq=[0.0] * m,
                   lb=[0.0] * (4 * n),
                   ub=[M * u for u in ub_y] + [M * u for u in ub_z] + ub_y + ub_z,
                   vtype='C' * (2 * n) + 'B' * (2 * n),
                   solver=solver,
                   solver_params=solver_params)
    cycles = []
    while True:
        x, _, status = milp.solve()
        if status != OPTIMAL:
            break
        if len(cycles) >= limit:
            return None
        v = np.array(x[:n]) - np.array(x[n:2 * n])
        supp = [i for i in range(n) if x[2 * n + i] + x[3 * n + i] > 0.5]
        v[[i for i in range(n) if i not in supp]] = 0.0
        cycles += [v]
        cut = sparse.csr_matrix(([1.0] * 2 * len(supp), ([0] * 2 * len(supp), [2 * n + i for i in supp] +
                                                          [3 * n + i for i in supp])),
                                shape=(1, 4 * n))
        milp.add_ineq_constraints(cut, [len(supp) - 1])
        logging.debug('Elementary cycle ' + str(len(cycles)) + ' with ' + str(len(supp)) + ' reactions.')
    if not cycles:
        return np.zeros((n, 0))
    return np.array(cycles).T


def loop_components(B, use_as_basis=False) -> List[Tuple[List[int], np.ndarray]]:
    """Group reactions that share a column of B

    Args:
        B (numpy.ndarray):
            Loop vectors as columns (one row per reaction).

        use_as_basis (bool): (Default: False)
            If True, the columns of B that belong to a component are returned as its basis.

    Returns:
        (list of (list of int, numpy.ndarray or None)):
            Reaction indices of each component and (optionally) its basis.
    """
    support = [i for i in range(B.shape[0]) if np.any(B[i, :] != 0)]
    if not support:
        return []
    P = sparse.csr_matrix(B[support, :] != 0, dtype=float)
    num, labels = connected_components(P @ P.T, directed=False)
    components = []
    for k in range(num):
        rows = [i for i, l in enumerate(labels) if l == k]
        rxns = [support[i] for i in rows]
        if use_as_basis:
            cols = [c for c in range(B.shape[1]) if np.any(B[rxns, c] != 0)]
            components += [(rxns, B[np.ix_(rxns, cols)])]
        else:
            components += [(rxns, None)]
    return components
