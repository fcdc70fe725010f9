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
"""Exceptions raised by flux variability analysis (FVAError and subclasses)"""

from cobra.exceptions import OptimizationError, Infeasible, Unbounded


class FVAError(Exception):
    """Base class of all errors raised by the flux variability engine

    Besides the message, errors carry the context that is needed to reproduce
    the failing (sub-)problem: the reaction identifier, the optimization sense
    and the loop exclusion method. All context fields are optional.

    Args:
        message (str):
            Human readable description of the error.

        reaction (optional (str)):
            Identifier of the reaction whose sub-problem failed.

        sense (optional (str)):
            'minimize' or 'maximize'.

        method (optional (str)):
            The loop exclusion method that was in use.
    """

    def __init__(self, message, reaction=None, sense=None, method=None):
        # context in args for unpickling in the calling process
        Exception.__init__(self, message, reaction, sense, method)
        self.message = message
        self.reaction = reaction
        self.sense = sense
        self.method = method

    def __str__(self):
        context = [k + '=' + str(v) for k, v in (('reaction', self.reaction), ('sense', self.sense),
                                                ('method', self.method)) if v is not None]
        if context:
            return self.message + ' (' + ', '.join(context) + ')'
        return self.message


class InvalidInput(FVAError, ValueError):
    """Malformed reaction identifiers, inconsistent bounds or unrecognized option values"""


class UnsupportedLoopMethod(InvalidInput):
    """Unknown loop exclusion method"""


class IncompatibleOptions(FVAError):
    """A combination of options that cannot be solved together"""


class BaselineInfeasible(FVAError, Infeasible):
    """The reference optimization has no feasible solution"""


class BaselineUnbounded(FVAError, Unbounded):
    """The reference optimization is unbounded"""


class PerReactionSolveFailure(FVAError, OptimizationError):
    """The minimization or maximization of a single reaction failed"""
