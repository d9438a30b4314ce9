"""
Native backend for knorpelsolve
"""
import _ctypes
import ctypes
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

from .errors import SolverError

logger = logging.getLogger(__name__)


def _unload(handle):
    """Unload a shared library by its OS handle"""
    if os.name == 'nt':
        _ctypes.FreeLibrary(handle)
    else:
        _ctypes.dlclose(handle)


class NativeLibrary:
    """
    Backend that sends problem messages to a compiled solver library.

    The library must export two C functions::

        const char *solve(const uint8_t *buffer, size_t len);
        void free(char *s);

    ``solve`` receives the JSON-encoded problem message and returns a
    JSON-encoded answer (or NULL on failure), which is released with
    ``free``. Obtaining the binary is up to the caller.

    Parameters
    ----------
    binary_path : str or Path
        Location of the shared library on disk

    Examples
    --------
    >>> from knorpelsolve import NativeLibrary
    >>>
    >>> with NativeLibrary("/path/to/libknorpelsolve.so") as lib:
    ...     p = lib.problem()
    ...     a = p.variable("a", max=1)
    ...     solution = p.maximize(a)
    """

    def __init__(self, binary_path: Union[str, Path]):
        binary_path = Path(binary_path)
        if not binary_path.exists():
            raise FileNotFoundError(f"Solver library not found: {binary_path}")

        self.binary_path = binary_path
        self._lib = ctypes.CDLL(str(binary_path))
        self._lib.solve.argtypes = [ctypes.c_char_p, ctypes.c_size_t]
        self._lib.solve.restype = ctypes.c_void_p
        self._lib.free.argtypes = [ctypes.c_void_p]
        self._lib.free.restype = None
        self._closed = False
        logger.debug(f"Loaded solver library {binary_path}")

    def problem(self):
        """Create a new problem that is solved by this library"""
        from .problem import Problem
        return Problem(backend=self)

    def solve(self, message: Dict[str, Any], options=None) -> Dict[str, Any]:
        """
        Send a problem message to the library and return its answer.

        Parameters
        ----------
        message : dict
            Problem message, see :meth:`knorpelsolve.Problem.to_message`
        options : SolveOptions, optional
            Unused; the verbose flag already travels inside the message

        Returns
        -------
        dict
            ``{"status": ..., "values": [...]}``

        Raises
        ------
        SolverError
            If the library returns no answer
        """
        if self._closed:
            raise RuntimeError("Cannot solve: library has been closed")

        buf = json.dumps(message).encode('utf-8')
        ptr = self._lib.solve(buf, len(buf))
        if not ptr:
            raise SolverError("Solver library returned no answer, see its stderr output")
        try:
            answer = ctypes.string_at(ptr).decode('utf-8')
        finally:
            self._lib.free(ptr)
        return json.loads(answer)

    def close(self):
        """
        Unload the library.

        After calling this method, the library cannot be used anymore, and
        functions taken from it must not be called.
        """
        if not self._closed:
            handle = self._lib._handle
            self._lib = None
            self._closed = True
            _unload(handle)
            logger.debug(f"Unloaded solver library {self.binary_path}")

    def __del__(self):
        """Unload the library when the object is garbage collected"""
        if not getattr(self, '_closed', True):
            self.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - automatically unload the library"""
        self.close()
        return False

    def __repr__(self):
        if self._closed:
            return "<knorpelsolve.NativeLibrary (closed)>"
        return f"<knorpelsolve.NativeLibrary {self.binary_path}>"


def load_cached(binary_path: Union[str, Path]) -> NativeLibrary:
    """Load the solver library from a known location"""
    return NativeLibrary(binary_path)
