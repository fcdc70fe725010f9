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
"""Class for indicator contraints (IndicatorConstraints)"""

from scipy import sparse


class IndicatorConstraints:
    """A class for storing indicator contraints

    Indicator constraints link the fulfillment of a linear constraint to the value of a
    binary variable. In flux variability analysis they carry the sign conditions of the
    loop law, e.g., for the direction indicator a_j of reaction j:
    a_j = 1 -> -v_j <= 0   and   a_j = 1 -> G_j <= -1
    a_j = 0 ->  v_j <= 0   and   a_j = 0 -> -G_j <= -1
    Solvers without native support translate them into bigM constraints:
    a*x + z*M <= b + M   (indicator value 1)
    a*x - z*M <= b       (indicator value 0)

    Indicator constraints have the form:
    x_binv = indicval -> a * x <sense> b
    This class contains a set of indicator constraints:
    x_binv_1 = indicval_1 -> A_1 * x <sense_1> b_1
    x_binv_2 = indicval_2 -> A_2 * x <sense_2> b_2
    ...

    Example:
        ic = IndicatorConstraints(binv, A, b, sense, indicval)

    Args:
        binv (list of int): (e.g.: [25, 27, 30])
            The index of the binary, indicating variables (indicators) for all indicator constraints.
            Integers are allowed ot occur more than once.

        A (sparse.csr_matrix):
            Coefficient vectors for all indicator constraints, one row per constraint
            (num_columns = number of variables, num_rows = number of indicator constraints)

        b (list of float):
            Right hand sides of all indicator constraints.

        sense (str):
            (In)equality signs for all indicator constraints: 'L'ess or equal or 'E'qual
            (e.g.: 'LLEL'). Greater-or-equal constraints must be negated beforehand.

        indicval (list of int):
            Indicator values for all indicator constraints, i.e., the value of the indicator
            that enforces the constraint.

    Returns:
        (IndicatorConstraints):
        An object of the IndicatorConstraints class to pass indicator constraints.
    """

    def __init__(self, binv, A, b, sense, indicval):
        self.binv = list(binv)
        self.A = sparse.csr_matrix(A)
        self.b = list(b)
        self.sense = sense
        self.indicval = list(indicval)

    def resize(self, numvars):
        """Pad the coefficient matrix with empty columns up to numvars variables"""
        A = self.A.tocoo()
        A.resize((A.shape[0], numvars))
        return IndicatorConstraints(self.binv, A.tocsr(), self.b, self.sense, self.indicval)
