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
"""Static strings used in the fluxvariability package

    Options

        OPT_PERCENTAGE = 'opt_percentage'

        OSENSE = 'osense'

        RXN_NAME_LIST = 'rxn_name_list'

        PRINT_LEVEL = 'print_level'

        ALLOW_LOOPS = 'allow_loops'

        METHOD = 'method'

        HEURISTICS = 'heuristics'

        MIN_NORM = 'min_norm'

        REF_FLUX = 'ref_flux'

        SOLVER_PARAMS = 'solver_params'

        THREADS = 'threads'

        STRICT = 'strict'

        CONSTRAINTS = 'constraints'

        RETURN_FLUXES = 'return_fluxes'

    Loop exclusion methods

        LOOPS_ALLOWED = 'none'

        ORIGINAL = 'original'

        FASTSNP = 'fastSNP'

        LLC_NS = 'LLC-NS'

        LLC_EFM = 'LLC-EFM'

    Secondary objectives

        FBA = 'FBA'

        ZERO_NORM = '0-norm'

        ONE_NORM = '1-norm'

        TWO_NORM = '2-norm'

        MIN_ORIG_SOL = 'minOrigSol'

    Solvers and status codes

        SOLVER = 'solver'

        GUROBI = 'gurobi'

        GLPK = 'glpk'

        OPTIMAL = 'optimal' # from optlang interface

        INFEASIBLE ='infeasible' # from optlang interface

        TIME_LIMIT = 'time_limit' # from optlang interface

        UNBOUNDED = 'unbounded' # from optlang interface

        TIME_LIMIT_W_SOL = 'time_limit_w_sols'

        ERROR = 'error'

    Analysis

        MAXIMIZE = 'maximize'

        MINIMIZE = 'minimize'
"""

# Options
OPT_PERCENTAGE = 'opt_percentage'
OSENSE = 'osense'
RXN_NAME_LIST = 'rxn_name_list'
PRINT_LEVEL = 'print_level'
ALLOW_LOOPS = 'allow_loops'
METHOD = 'method'
HEURISTICS = 'heuristics'
MIN_NORM = 'min_norm'
REF_FLUX = 'ref_flux'
SOLVER_PARAMS = 'solver_params'
THREADS = 'threads'
STRICT = 'strict'
CONSTRAINTS = 'constraints'
RETURN_FLUXES = 'return_fluxes'

# Loop exclusion methods
LOOPS_ALLOWED = 'none'
ORIGINAL = 'original'
FASTSNP = 'fastSNP'
LLC_NS = 'LLC-NS'
LLC_EFM = 'LLC-EFM'
LOOP_METHODS = (LOOPS_ALLOWED, ORIGINAL, FASTSNP, LLC_NS, LLC_EFM)

# Secondary objectives
FBA = 'FBA'
ZERO_NORM = '0-norm'
ONE_NORM = '1-norm'
TWO_NORM = '2-norm'
MIN_ORIG_SOL = 'minOrigSol'
NORM_METHODS = (FBA, ZERO_NORM, ONE_NORM, TWO_NORM, MIN_ORIG_SOL)

# Solvers and status codes
SOLVER = 'solver'
GUROBI = 'gurobi'
GLPK = 'glpk'
from optlang.interface import OPTIMAL,    \
                              INFEASIBLE, \
                              TIME_LIMIT, \
                              UNBOUNDED

TIME_LIMIT_W_SOL = 'time_limit_w_sols'
ERROR = 'error'

# Analysis
MAXIMIZE = 'maximize'
MINIMIZE = 'minimize'
