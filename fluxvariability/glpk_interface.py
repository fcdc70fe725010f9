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
"""GLPK solver interface for LP and MILP"""

from scipy import sparse
from numpy import nan, inf, isinf
from fluxvariability.names import *
from typing import Tuple, List
from swiglpk import *
import logging


class GLPK_MILP_LP():
    """GLPK interface for MILP and LP

    This class is a wrapper for the GLPK-Python API to offer bindings and namings
    for functions for the construction and manipulation of MILPs and LPs in an
    vector-matrix-based manner that are consistent with those of the other solver
    interfaces in the fluxvariability package.

    The GLPK interface does not natively support indicator constraints. They are
    hence translated to bigM-constraints when passed to the GLPK constructor
    (see docstring of IndicatorConstraints). Quadratic objectives are not supported.

    Accepts a (mixed integer) linear problem in the form:
        minimize(c),
        subject to:
        A_ineq * x <= b_ineq,
        A_eq * x  = b_eq,
        lb <= x <= ub,
        forall(i) type(x_i) = vtype(i) (continous, binary, integer),
        indicator constraints:
        x(j) = [0|1] -> a_indic * x [<=|=] b_indic

    Example:
        glpk = GLPK_MILP_LP(c, A_ineq, b_ineq, A_eq, b_eq, lb, ub, vtype, indic_constr, M)

    Args:
        c, A_ineq, b_ineq, A_eq, b_eq, lb, ub, vtype:
            The problem, see MILP_LP.

        indic_constr (IndicatorConstraints): (Default: None)
            A set of indicator constraints stored in an object of IndicatorConstraints.
            To make GLPK compatible with indicator constraints, they are translated into
            bigM-constraints (see docstring of IndicatorConstraints).

        M (float): (Default: None)
            A large value that is used in the translation of indicator constraints to
            bigM-constraints. If no value is provided, 1000 is used.

        Returns:
            (GLPK_MILP_LP):

            A GLPK MILP/LP interface class.
    """

    def __init__(self, c=None, A_ineq=None, b_ineq=None, A_eq=None, b_eq=None, lb=None, ub=None, vtype=None, indic_constr=None, M=None):
        self.glpk = glp_create_prob()
        # Careful with indexing! GLPK indexing starts with 1 and not with 0
        numvars = A_ineq.shape[1]
        self.ismilp = not all([v == 'C' for v in vtype])

        # add and set variables, types and bounds
        if numvars > 0:
            glp_add_cols(self.glpk, numvars)
        for i, v in enumerate(vtype):
            if v == 'C':
                glp_set_col_kind(self.glpk, i + 1, GLP_CV)
            if v == 'I':
                glp_set_col_kind(self.glpk, i + 1, GLP_IV)
            if v == 'B':
                glp_set_col_kind(self.glpk, i + 1, GLP_BV)
        self.set_bounds([[i, l, u] for i, l, u in zip(range(numvars), lb, ub)])

        # set objective
        glp_set_obj_dir(self.glpk, GLP_MIN)
        for i, c_i in enumerate(c):
            glp_set_obj_coef(self.glpk, i + 1, float(c_i))

        # translate indicator constraints to bigM constraints
        A_indic = sparse.lil_matrix((0, numvars))
        b_indic = []
        if indic_constr is not None and len(indic_constr.binv):
            if not M:
                M = 1e3
            logging.debug('There is no native support of indicator constraints with GLPK. '
                          'Indicator constraints are translated to big-M constraints with M=' + str(M) + '.')
            for i in range(len(indic_constr.binv)):
                binv = indic_constr.binv[i]
                A = indic_constr.A[i]
                b = float(indic_constr.b[i])
                if indic_constr.sense[i] == 'E':
                    A = sparse.vstack((A, -A)).tolil()
                    b = [b, -b]
                else:
                    A = A.tolil()
                    b = [b]
                if indic_constr.indicval[i]:
                    A[:, binv] = M
                    b = [v + M for v in b]
                else:
                    A[:, binv] = -M
                A_indic = sparse.vstack((A_indic, A))
                b_indic = b_indic + b

        # stack all problem rows and add constraints
        if A_ineq.shape[0] + A_eq.shape[0] + A_indic.shape[0] > 0:
            glp_add_rows(self.glpk, A_ineq.shape[0] + A_eq.shape[0] + A_indic.shape[0])
            eq_type = [GLP_UP] * len(b_ineq) + [GLP_FX] * len(b_eq) + [GLP_UP] * len(b_indic)
            for i, t, b in zip(range(len(b_ineq + b_eq + b_indic)), eq_type, b_ineq + b_eq + b_indic):
                if isinf(b):
                    glp_set_row_bnds(self.glpk, i + 1, GLP_FR, -inf, inf)
                else:
                    glp_set_row_bnds(self.glpk, i + 1, t, float(b), float(b))

            A = sparse.vstack((A_ineq, A_eq, A_indic), 'coo')
            ia = intArray(A.nnz + 1)
            ja = intArray(A.nnz + 1)
            ar = doubleArray(A.nnz + 1)
            for i, row, col, data in zip(range(A.nnz), A.row, A.col, A.data):
                ia[i + 1] = int(row) + 1
                ja[i + 1] = int(col) + 1
                ar[i + 1] = float(data)
            if A.nnz:
                glp_load_matrix(self.glpk, A.nnz, ia, ja, ar)

        # LP simplex parameters
        self.lp_params = glp_smcp()
        glp_init_smcp(self.lp_params)
        self.max_tlim = self.lp_params.tm_lim
        self.lp_params.tol_bnd = 1e-9
        self.lp_params.msg_lev = 0
        # MILP parameters
        if self.ismilp:
            self.milp_params = glp_iocp()
            glp_init_iocp(self.milp_params)
            self.milp_params.presolve = 1
            self.milp_params.tol_int = 1e-12
            self.milp_params.tol_obj = 1e-9
            self.milp_params.msg_lev = 0

    def set_params(self, params):
        """Pass solver parameters to the simplex (glp_smcp) and branch-and-cut (glp_iocp) parameter sets"""
        for key, value in params.items():
            known = False
            if hasattr(self.lp_params, key):
                setattr(self.lp_params, key, value)
                known = True
            if self.ismilp and hasattr(self.milp_params, key):
                setattr(self.milp_params, key, value)
                known = True
            if not known:
                logging.warning('GLPK does not know the parameter "' + str(key) + '". It is ignored.')

    def solve(self) -> Tuple[List, float, str]:
        """Solve the MILP or LP

        Example:
            sol_x, optim, status = glpk.solve()

        Returns:
            (Tuple[List, float, str])

            solution_vector, optimal_value, optimization_status
        """
        try:
            min_cx, status, bool_tlim = self.solve_MILP_LP()
            if status in [GLP_OPT, GLP_FEAS] and not bool_tlim:  # solution
                status = OPTIMAL
            elif bool_tlim and status == GLP_FEAS:  # timeout with solution
                status = TIME_LIMIT_W_SOL
            elif bool_tlim and status in [GLP_UNDEF, GLP_INFEAS]:  # timeout without solution
                x = [nan] * glp_get_num_cols(self.glpk)
                return x, nan, TIME_LIMIT
            elif status in [GLP_INFEAS, GLP_NOFEAS]:  # infeasible
                x = [nan] * glp_get_num_cols(self.glpk)
                return x, nan, INFEASIBLE
            elif status in [GLP_UNBND, GLP_UNDEF]:  # solution unbounded
                x = [nan] * glp_get_num_cols(self.glpk)
                return x, -inf, UNBOUNDED
            elif status == GLP_OPT:
                status = OPTIMAL
            else:
                raise Exception('Status code ' + str(status) + " not yet handeld.")
            x = self.getSolution()
            x = [round(y, 12) for y in x]  # workaround, round to 12 decimals
            min_cx = round(min_cx, 12)
            return x, min_cx, status
        except Exception as e:
            logging.error('Error while running GLPK: ' + str(e))
            x = [nan] * glp_get_num_cols(self.glpk)
            return x, nan, ERROR

    def set_objective(self, c):
        """Set the objective function with a vector"""
        for i, c_i in enumerate(c):
            glp_set_obj_coef(self.glpk, i + 1, float(c_i))

    def set_objective_idx(self, C):
        """Set the objective function with index-value pairs

        e.g.: C=[[1, 1.0], [4,-0.2]]"""
        for c in C:
            glp_set_obj_coef(self.glpk, c[0] + 1, float(c[1]))

    def set_bounds(self, bounds):
        """Set variable bounds with index-lower-upper triplets, e.g.: [[1, 0.0, 10.0], [4, -inf, inf]]"""
        for i, l, u in bounds:
            l = float(l)
            u = float(u)
            if isinf(l) and isinf(u):
                glp_set_col_bnds(self.glpk, i + 1, GLP_FR, 0.0, 0.0)
            elif not isinf(l) and isinf(u):
                glp_set_col_bnds(self.glpk, i + 1, GLP_LO, l, 0.0)
            elif isinf(l) and not isinf(u):
                glp_set_col_bnds(self.glpk, i + 1, GLP_UP, 0.0, u)
            elif l < u:
                glp_set_col_bnds(self.glpk, i + 1, GLP_DB, l, u)
            else:
                glp_set_col_bnds(self.glpk, i + 1, GLP_FX, l, l)

    def set_time_limit(self, t):
        """Set the computation time limit (in seconds)"""
        if isinf(t) or t * 1000 > self.max_tlim:
            if self.ismilp:
                self.milp_params.tm_lim = self.max_tlim
            self.lp_params.tm_lim = self.max_tlim
        else:
            if self.ismilp:
                self.milp_params.tm_lim = int(t * 1000)
            self.lp_params.tm_lim = int(t * 1000)

    def add_ineq_constraints(self, A_ineq, b_ineq):
        """Add inequality constraints to the model

        Additional inequality constraints have the form A_ineq * x <= b_ineq.

        Args:
            A_ineq (sparse.csr_matrix):
                The coefficient matrix

            b_ineq (list of float):
                The right hand side vector
        """
        numrows = glp_get_num_rows(self.glpk)
        glp_add_rows(self.glpk, A_ineq.shape[0])
        for j in range(A_ineq.shape[0]):
            self._set_row(numrows + j, A_ineq[j])
            if isinf(b_ineq[j]):
                glp_set_row_bnds(self.glpk, numrows + j + 1, GLP_FR, -inf, inf)
            else:
                glp_set_row_bnds(self.glpk, numrows + j + 1, GLP_UP, -inf, float(b_ineq[j]))

    def set_ineq_constraint(self, idx, a_ineq, b_ineq):
        """Replace a specific inequality constraint

        Replace the constraint with the index idx with the constraint a_ineq*x ~ b_ineq

        Args:
            idx (int):
                Index of the constraint

            a_ineq (list of float):
                The coefficient vector

            b_ineq (float):
                The right hand side value
        """
        self._set_row(idx, sparse.csr_matrix(a_ineq))
        if isinf(b_ineq):
            glp_set_row_bnds(self.glpk, idx + 1, GLP_FR, -inf, inf)
        else:
            glp_set_row_bnds(self.glpk, idx + 1, GLP_UP, -inf, float(b_ineq))

    def _set_row(self, idx, a):
        """Write the sparse coefficient row a into row idx (0-based)"""
        a = sparse.csr_matrix(a)
        col = intArray(a.nnz + 1)
        val = doubleArray(a.nnz + 1)
        for k, (i, v) in enumerate(zip(a.indices, a.data)):
            col[k + 1] = int(i) + 1
            val[k + 1] = float(v)
        glp_set_mat_row(self.glpk, idx + 1, a.nnz, col, val)

    def getSolution(self) -> list:
        """Retrieve solution from GLPK backend"""
        if self.ismilp:
            x = [glp_mip_col_val(self.glpk, i + 1) for i in range(glp_get_num_cols(self.glpk))]
        else:
            x = [glp_get_col_prim(self.glpk, i + 1) for i in range(glp_get_num_cols(self.glpk))]
        return x

    def solve_MILP_LP(self) -> Tuple[float, int, bool]:
        """Trigger GLPK solution through backend"""
        starttime = glp_time()
        # MILP solving needs prior solution of the LP-relaxed problem, because occasionally
        # the MILP solver interface crashes when a problem is infesible.
        prelim_status = glp_simplex(self.glpk, self.lp_params)
        # Feasible LPs occasionally fail initially (GLP_EFAIL) but complete when presolved.
        if prelim_status == GLP_EFAIL:
            self.lp_params.presolve = 1
            self.lp_params.meth = 3
            prelim_status = glp_simplex(self.glpk, self.lp_params)
            self.lp_params.presolve = 0
            self.lp_params.meth = 1
        status = glp_get_status(self.glpk)
        if self.ismilp and status not in [GLP_INFEAS, GLP_NOFEAS, GLP_UNBND]:
            glp_intopt(self.glpk, self.milp_params)
            status = glp_mip_status(self.glpk)
            opt = glp_mip_obj_val(self.glpk)
        else:
            opt = glp_get_obj_val(self.glpk)
        timelim_reached = glp_difftime(glp_time(), starttime) * 1000 >= self.lp_params.tm_lim
        return opt, status, timelim_reached
