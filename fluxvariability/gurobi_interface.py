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
"""Gurobi solver interface for LP, MILP and (MI)QP"""

from scipy import sparse
from numpy import nan, inf, isinf, array, random
import gurobipy as gp
from gurobipy import GRB as grb
from fluxvariability.names import *
from typing import Tuple, List
import logging

gstatus = gp.StatusConstClass


class Gurobi_MILP_LP(gp.Model):
    """Gurobi interface for MILP, LP and QP

    This class is a wrapper for the Gurobi-Python API to offer bindings and namings
    for functions for the construction and manipulation of MILPs and LPs in an
    vector-matrix-based manner that are consistent with those of the other solver
    interfaces in the fluxvariability package.

    The Gurobi interface provides native support for indicator constraints and
    for (convex) quadratic objective terms.

    Accepts a (mixed integer) linear or quadratic problem in the form:
        minimize(c*x + x'*Q*x),
        subject to:
        A_ineq * x <= b_ineq,
        A_eq * x  = b_eq,
        lb <= x <= ub,
        forall(i) type(x_i) = vtype(i) (continous, binary, integer),
        indicator constraints:
        x(j) = [0|1] -> a_indic * x [<=|=] b_indic

    Example:
        gurobi = Gurobi_MILP_LP(c, A_ineq, b_ineq, A_eq, b_eq, lb, ub, vtype, indic_constr, Q)

    Args:
        c, A_ineq, b_ineq, A_eq, b_eq, lb, ub, vtype, indic_constr:
            The problem, see MILP_LP.

        Q (sparse.csr_matrix): (Default: None)
            Quadratic objective term.

        seed (int16): (Default: None)
            An integer value serving as a seed to make MILP solving reproducible.

        Returns:
            (Gurobi_MILP_LP):

            A Gurobi MILP/LP interface class.
    """

    def __init__(self, c=None, A_ineq=None, b_ineq=None, A_eq=None, b_eq=None, lb=None, ub=None, vtype=None, indic_constr=None, Q=None,
                 seed=None):
        super().__init__()
        b_ineq = [grb.INFINITY if isinf(v) else v for v in b_ineq]
        lb = [-grb.INFINITY if isinf(v) else v for v in lb]
        ub = [grb.INFINITY if isinf(v) else v for v in ub]
        # construct Gurobi problem. Add variables and linear constraints
        self._x = self.addMVar(len(c), lb=lb, ub=ub, vtype=[k for k in vtype])
        self._c = array(c)
        self._Q = Q
        self._update_objective()
        if A_ineq.shape[0]:
            self.addMConstr(A_ineq, self._x, grb.LESS_EQUAL, array(b_ineq))
        if A_eq.shape[0]:
            self.addMConstr(A_eq, self._x, grb.EQUAL, array(b_eq))

        # add indicator constraints
        if indic_constr is not None:
            xs = self._x.tolist()
            for i in range(len(indic_constr.sense)):
                row = indic_constr.A[i]
                self.addGenConstrIndicator(xs[indic_constr.binv[i]], bool(indic_constr.indicval[i]),
                                           gp.quicksum(v * xs[j] for j, v in zip(row.indices, row.data)),
                                           grb.EQUAL if indic_constr.sense[i] == 'E' else grb.LESS_EQUAL, indic_constr.b[i])

        # set parameters
        self.params.OutputFlag = 0
        self.params.OptimalityTol = 1e-9
        self.params.FeasibilityTol = 1e-9
        if 'B' in vtype or 'I' in vtype:
            if seed is None:
                seed = int(random.randint(0, 2**16 - 1))
                logging.debug('  MILP Seed: ' + str(seed))
            self.params.Seed = seed
            self.params.IntFeasTol = 1e-9  # (0 is not allowed by Gurobi)
            self.params.MIPGap = 1e-9
        self.update()

    def _update_objective(self):
        if self._Q is not None and self._Q.nnz:
            self.setObjective(self._c @ self._x + self._x @ self._Q @ self._x, grb.MINIMIZE)
        else:
            self.setObjective(self._c @ self._x, grb.MINIMIZE)

    def set_params(self, params):
        """Pass solver parameters verbatim to Gurobi"""
        for key, value in params.items():
            self.setParam(key, value)

    def solve(self) -> Tuple[List, float, str]:
        """Solve the MILP or LP

        Example:
            sol_x, optim, status = gurobi.solve()

        Returns:
            (Tuple[List, float, str])

            solution_vector, optimal_value, optimization_status
        """
        try:
            self.optimize()
            status = self.Status
            if status in [gstatus.OPTIMAL, gstatus.SOLUTION_LIMIT, gstatus.SUBOPTIMAL, gstatus.USER_OBJ_LIMIT]:  # solution
                min_cx = self.ObjVal
                status = OPTIMAL
            elif status in [gstatus.TIME_LIMIT, gstatus.ITERATION_LIMIT] and self.SolCount == 0:  # timeout without solution
                return [nan] * self.NumVars, nan, TIME_LIMIT
            elif status in [gstatus.TIME_LIMIT, gstatus.ITERATION_LIMIT]:
                min_cx = self.ObjVal
                status = TIME_LIMIT_W_SOL
            elif status in [gstatus.INF_OR_UNBD, gstatus.UNBOUNDED, gstatus.INFEASIBLE]:
                # solve problem again without dual reductions to distinguish infeasible and unbounded
                self.params.DualReductions = 0
                self.optimize()
                self.params.DualReductions = 1
                if self.Status == gstatus.INFEASIBLE:
                    return [nan] * self.NumVars, nan, INFEASIBLE
                else:
                    return [nan] * self.NumVars, -inf, UNBOUNDED
            else:
                raise Exception('Status code ' + str(status) + " not yet handeld.")
            x = self.getSolution()
            return x, min_cx, status

        except gp.GurobiError as e:
            logging.error('Error code ' + str(e.errno) + ": " + str(e))
            return [nan] * self.NumVars, nan, ERROR

    def set_objective(self, c):
        """Set the objective function with a vector"""
        self._c = array(c, dtype=float)
        self._update_objective()
        self.update()

    def set_objective_idx(self, C):
        """Set the objective function with index-value pairs

        e.g.: C=[[1, 1.0], [4,-0.2]]"""
        for i, v in C:
            self._c[i] = v
        self._update_objective()
        self.update()

    def set_time_limit(self, t):
        """Set the computation time limit (in seconds)"""
        self.params.TimeLimit = grb.INFINITY if isinf(t) else t
        self.update()

    def add_ineq_constraints(self, A_ineq, b_ineq):
        """Add inequality constraints to the model

        Additional inequality constraints have the form A_ineq * x <= b_ineq.

        Args:
            A_ineq (sparse.csr_matrix):
                The coefficient matrix

            b_ineq (list of float):
                The right hand side vector
        """
        b_ineq = [grb.INFINITY if isinf(v) else v for v in b_ineq]
        self.addMConstr(sparse.csr_matrix(A_ineq), self._x, grb.LESS_EQUAL, array(b_ineq))
        self.update()

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
        constr = self.getConstrs()[idx]
        [self.chgCoeff(constr, x, val) for x, val in zip(self._x.tolist(), a_ineq)]
        constr.rhs = grb.INFINITY if isinf(b_ineq) else b_ineq
        self.update()

    def getSolution(self) -> list:
        """Retrieve solution from Gurobi backend"""
        return self._x.X.tolist()
