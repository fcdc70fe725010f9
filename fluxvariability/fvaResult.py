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
"""Class: FVA result (FVAResult)"""

from pandas import DataFrame
from typing import List
from fluxvariability.names import *


class FVAResult:
    """Flux ranges and flux vectors of a flux variability analysis

    Minima and maxima are ordered like the requested reactions. Flux vectors are stored as
    matrices with one row per model reaction and one column per requested reaction.

    Example:
        result = flux_variability(model, rxn_name_list=['PGI', 'PFK'])
        result.to_frame()

    Attributes:
        reaction_ids (list of str):
            The requested reactions.

        model_reaction_ids (list of str):
            All reactions of the model (rows of the flux vectors).

        minimum, maximum (list of float):
            Minimal and maximal fluxes of the requested reactions, nan if a sub-problem failed.

        v_min, v_max (numpy.ndarray or None):
            Flux vectors attaining the minima and maxima (None if not requested).

        objective_value (float):
            Optimal objective value of the reference optimization.

        reference_flux (list of float):
            Flux vector of the reference optimization.

        loop_method (str):
            The loop exclusion method in use.

        min_norm (str or None):
            The secondary objective of the flux vectors.
    """

    def __init__(self, reaction_ids, model_reaction_ids, minimum, maximum, v_min=None, v_max=None, objective_value=None,
                 reference_flux=None, loop_method=LOOPS_ALLOWED, min_norm=None):
        self.reaction_ids = list(reaction_ids)
        self.model_reaction_ids = list(model_reaction_ids)
        self.minimum = list(minimum)
        self.maximum = list(maximum)
        self.v_min = v_min
        self.v_max = v_max
        self.objective_value = objective_value
        self.reference_flux = reference_flux
        self.loop_method = loop_method
        self.min_norm = min_norm

    def __repr__(self):
        return '<FVAResult ' + str(len(self.reaction_ids)) + ' reaction(s), objective value ' + str(
            self.objective_value) + ', loops: ' + self.loop_method + '>'

    def __len__(self):
        return len(self.reaction_ids)

    def to_frame(self) -> DataFrame:
        """Flux ranges as a data frame indexed by reaction identifiers"""
        return DataFrame(
            {
                "minimum": self.minimum,
                "maximum": self.maximum,
            },
            index=self.reaction_ids,
        )

    def fluxes_frame(self, which=MINIMIZE) -> DataFrame:
        """Flux vectors of the minima ('minimize') or maxima ('maximize') as a data frame

        Rows are model reactions, columns are the requested reactions.
        """
        if which not in [MINIMIZE, MAXIMIZE]:
            raise ValueError('which must be "' + MINIMIZE + '" or "' + MAXIMIZE + '".')
        V = self.v_min if which == MINIMIZE else self.v_max
        if V is None:
            raise ValueError('No flux vectors were computed. Use min_norm or return_fluxes=True.')
        return DataFrame(V, index=self.model_reaction_ids, columns=self.reaction_ids)
