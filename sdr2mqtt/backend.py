"""
Array backend selection.

Decoding runs on NumPy. When CuPy is installed and functional, arrays that
already live on the GPU are processed with CuPy without copying them back;
host-side results (intervals, bit strings) are always plain Python values.
"""

import types
from typing import Any, Tuple, Union

import numpy as np

from .logger import logger

try:
    import cupy as cp

    # CuPy can import cleanly while its shared libraries are missing.
    try:
        cp.arange(1)
        _CUPY_AVAILABLE = True
        logger.debug("CuPy is available and functional.")
    except Exception:
        _CUPY_AVAILABLE = False
        cp = None
        logger.warning("CuPy has problems with shared libraries, using NumPy.")

except ImportError:
    _CUPY_AVAILABLE = False
    cp = None

ArrayType = Union[np.ndarray, Any]

_FORCE_CPU = False


def use_cpu_only(force: bool = True) -> None:
    """
    Forces NumPy for every array, even when CuPy is available.

    Args:
        force: If True, CuPy arrays are treated as unavailable.
    """
    global _FORCE_CPU
    _FORCE_CPU = force


def is_cupy_available() -> bool:
    """Returns True if CuPy is available, functional and not forced off."""
    if _FORCE_CPU:
        return False
    return _CUPY_AVAILABLE


def get_array_module(data: Any) -> types.ModuleType:
    """
    Returns the array module (numpy or cupy) owning ``data``.
    """
    if is_cupy_available():
        return cp.get_array_module(data)
    return np


def to_host(data: Any) -> np.ndarray:
    """
    Returns ``data`` as a NumPy array, copying from the GPU if needed.
    """
    if is_cupy_available() and isinstance(data, cp.ndarray):
        return data.get()
    return np.asarray(data)


def dispatch(data: Any) -> Tuple[ArrayType, types.ModuleType]:
    """
    Coerces ``data`` to an array and returns it with its array module.

    Bytes-like inputs are viewed as ``uint8``; lists and tuples go through
    ``asarray`` of the inferred module.

    Args:
        data: Array, list, or bytes-like input.

    Returns:
        Tuple of (data_array, xp_module).
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(data, dtype=np.uint8), np

    xp = get_array_module(data)
    if not isinstance(data, (np.ndarray, getattr(cp, "ndarray", type(None)))):
        data = xp.asarray(data)

    return data, xp
