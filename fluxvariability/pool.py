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
"""Process pool for the parallel flux variability workers, adapted from the pool in cobra."""

from multiprocessing.pool import Pool
from multiprocessing import get_context
import os
import sys
import pickle
from os.path import isfile
from platform import system
from tempfile import mkstemp
from typing import Callable, Optional, Tuple


def _init_win_worker(filename: str) -> None:
    """Retrieve worker initialization code from a pickle file and call it."""
    with open(filename, mode="rb") as handle:
        func, *args = pickle.load(handle)
    func(*args)


class FVAPool(Pool):
    """Multiprocessing process pool for FVA workers

    Every worker process receives the shared, read-only problem data once through the
    initializer and keeps its own solver instances afterwards. On Windows, the
    initialization data is passed through a pickle file rather than directly to avoid
    a performance issue of multiprocessing on that platform [1_]. Workers are started
    with the 'spawn' method unless another context is given.

    References
    ----------
    .. [1] https://github.com/opencobra/cobrapy/issues/997

    """

    def __init__(self,
                 processes: Optional[int] = None,
                 initializer: Optional[Callable] = None,
                 initargs: Tuple = (),
                 maxtasksperchild: Optional[int] = None,
                 context=None):
        self._filename = None
        if initializer is not None and system() == "Windows":
            descriptor, self._filename = mkstemp(suffix=".pkl")
            # write through the descriptor returned by mkstemp so that the file is closed
            # and can be removed later on Windows
            with os.fdopen(descriptor, mode="wb") as handle:
                pickle.dump((initializer,) + initargs, handle)
            initializer = _init_win_worker
            initargs = (self._filename,)
        # Hide main.spec and main.file while the workers start. Multiprocessing reads
        # these to re-import the calling script in every spawned worker.
        spec = None
        file = None
        if context is None:
            context = get_context('spawn')
            main = sys.modules['__main__']
            if getattr(main, '__spec__', None):
                spec = main.__spec__
                main.__spec__ = None
            if getattr(main, '__file__', None):
                file = main.__file__
                main.__file__ = None
        try:
            super().__init__(
                processes=processes,
                initializer=initializer,
                initargs=initargs,
                maxtasksperchild=maxtasksperchild,
                context=context,
            )
        finally:
            if spec:
                sys.modules['__main__'].__spec__ = spec
            if file:
                sys.modules['__main__'].__file__ = file

    def __exit__(self, *args, **kwargs):
        """Clean up resources when leaving a context"""
        self._clean_up()
        super().__exit__(*args, **kwargs)

    def close(self):
        """Call cleanup function and close"""
        self._clean_up()
        super().close()

    def _clean_up(self):
        """Remove the dump file if it exists"""
        if self._filename is not None and isfile(self._filename):
            os.remove(self._filename)
