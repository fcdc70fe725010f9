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
"""Class: FVA options (FVAOptions)"""

from numbers import Number
from typing import Dict
from fluxvariability.names import *
from fluxvariability.exceptions import InvalidInput, UnsupportedLoopMethod


class FVAOptions(Dict):
    """Options of a flux variability analysis

    FVAOptions holds the complete configuration of an FVA call. Keys must be spelled out
    exactly; unknown keys are rejected. Undefined keys are set to their defaults and the values
    are checked and normalized on construction.

    Example:
        options = FVAOptions(opt_percentage=95, rxn_name_list=['PGI', 'PFK'], method='LLC-NS')

    Args:
        opt_percentage (float): (Default: 90)
            Percentage of the optimal objective value that every flux state must attain,
            0 < opt_percentage <= 100.

        osense (str): (Default: direction of the model objective)
            Optimization sense of the objective: 'maximize' or 'minimize' ('max' and 'min'
            are accepted).

        rxn_name_list (str or list of str): (Default: all reactions)
            Reactions whose flux ranges are computed. A single identifier is treated as a list
            with one element.

        print_level (int): (Default: 0)
            0: progress is logged on the DEBUG level, >= 1: on the INFO level.

        allow_loops (bool): (Default: True)
            If False and no method is given, loops are excluded with the method 'original'.

        method (str): (Default: None)
            Loop exclusion method: 'none', 'original', 'fastSNP', 'LLC-NS' or 'LLC-EFM'.
            Overrides allow_loops.

        heuristics (int): (Default: 0)
            Heuristic level 0-3 to reduce the number of solves.

        min_norm (str or bool): (Default: None)
            Secondary objective of the returned flux vectors: 'FBA', '0-norm', '1-norm', '2-norm'
            or 'minOrigSol'. True is read as 'FBA'. No flux vectors are computed if None.

        ref_flux (list of float): (Default: flux vector of the reference optimization)
            Reference flux vector for 'minOrigSol'.

        solver (str): (Default: None)
            Solver backend: 'glpk' or 'gurobi'. Resolved with select_solver if None.

        solver_params (dict): (Default: {})
            Parameters that are forwarded unchanged to the solver, e.g., {'time_limit': 60}.

        threads (int): (Default: 1)
            Number of worker processes.

        strict (bool): (Default: False)
            Raise PerReactionSolveFailure when a single sub-problem fails instead of reporting nan.

        constraints (str or list): (Default: None)
            Additional linear constraints, e.g., 'EX_o2_e >= -5, ATPM = 8.39'.

        return_fluxes (bool): (Default: False)
            Return flux vectors. If min_norm is None, the flux vectors of the bound solves are returned.
    """

    defaults = {
        OPT_PERCENTAGE: 90.0,
        OSENSE: None,
        RXN_NAME_LIST: None,
        PRINT_LEVEL: 0,
        ALLOW_LOOPS: True,
        METHOD: None,
        HEURISTICS: 0,
        MIN_NORM: None,
        REF_FLUX: None,
        SOLVER: None,
        SOLVER_PARAMS: None,
        THREADS: 1,
        STRICT: False,
        CONSTRAINTS: None,
        RETURN_FLUXES: False,
    }

    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            if key in self.defaults:
                self[key] = value
            else:
                raise InvalidInput("Key " + key + " is not supported.")
        for key, value in self.defaults.items():
            if key not in kwargs:
                self[key] = value

        if not isinstance(self[OPT_PERCENTAGE], Number) or not 0 < self[OPT_PERCENTAGE] <= 100:
            raise InvalidInput('"' + OPT_PERCENTAGE + '" must be a number in (0, 100].')
        self[OPT_PERCENTAGE] = float(self[OPT_PERCENTAGE])

        if self[OSENSE] is not None:
            sense = {'max': MAXIMIZE, MAXIMIZE: MAXIMIZE, 'min': MINIMIZE, MINIMIZE: MINIMIZE}
            if self[OSENSE] not in sense:
                raise InvalidInput('"' + OSENSE + '" must be "' + MAXIMIZE + '" or "' + MINIMIZE + '".')
            self[OSENSE] = sense[self[OSENSE]]

        if isinstance(self[RXN_NAME_LIST], str):
            self[RXN_NAME_LIST] = [self[RXN_NAME_LIST]]
        elif self[RXN_NAME_LIST] is not None:
            self[RXN_NAME_LIST] = list(self[RXN_NAME_LIST])
            if not all(isinstance(r, str) for r in self[RXN_NAME_LIST]):
                raise InvalidInput('"' + RXN_NAME_LIST + '" must contain reaction identifiers (str).')
            if len(set(self[RXN_NAME_LIST])) < len(self[RXN_NAME_LIST]):
                raise InvalidInput('"' + RXN_NAME_LIST + '" contains duplicate reaction identifiers.')

        # method takes precedence over allow_loops
        if self[METHOD] is None:
            self[METHOD] = LOOPS_ALLOWED if self[ALLOW_LOOPS] else ORIGINAL
        elif self[METHOD] not in LOOP_METHODS:
            raise UnsupportedLoopMethod('Unknown loop exclusion method "' + str(self[METHOD]) + '". Use one of: ' +
                                        ', '.join(LOOP_METHODS) + '.',
                                        method=self[METHOD])
        self[ALLOW_LOOPS] = self[METHOD] == LOOPS_ALLOWED

        if self[HEURISTICS] not in (0, 1, 2, 3) or isinstance(self[HEURISTICS], bool):
            raise InvalidInput('"' + HEURISTICS + '" must be 0, 1, 2 or 3.')

        if self[MIN_NORM] is True:
            self[MIN_NORM] = FBA
        elif self[MIN_NORM] is False:
            self[MIN_NORM] = None
        if self[MIN_NORM] is None and self[RETURN_FLUXES]:
            self[MIN_NORM] = FBA
        if self[MIN_NORM] is not None and self[MIN_NORM] not in NORM_METHODS:
            raise InvalidInput('"' + MIN_NORM + '" must be one of: ' + ', '.join(NORM_METHODS) + '.')
        self[RETURN_FLUXES] = self[MIN_NORM] is not None

        if self[SOLVER_PARAMS] is None:
            self[SOLVER_PARAMS] = {}
        elif not isinstance(self[SOLVER_PARAMS], dict):
            raise InvalidInput('"' + SOLVER_PARAMS + '" must be a dict.')

        if isinstance(self[THREADS], bool) or not isinstance(self[THREADS], int) or self[THREADS] < 1:
            raise InvalidInput('"' + THREADS + '" must be a positive integer.')
