"""
Capture file I/O.

Captures are headerless ``.cu8`` files as written by rtl_sdr / rtl_433:
interleaved unsigned 8-bit samples, I first, then Q. The sampling rate is not
stored in the file and must be supplied by the caller.

Functions
---------
deinterleave :
    Splits an in-memory interleaved buffer into I and Q sequences.
read_iq :
    Reads a capture file and de-interleaves it.
write_iq :
    Writes I and Q sequences as an interleaved capture file.
"""

import os
from typing import Any, Tuple, Union

import numpy as np

from .backend import ArrayType, dispatch, to_host
from .logger import logger

PathLike = Union[str, "os.PathLike[str]"]


def deinterleave(buffer: Any) -> Tuple[ArrayType, ArrayType]:
    """
    Splits an interleaved unsigned 8-bit IQ buffer.

    Even-indexed bytes become I, odd-indexed bytes become Q. A trailing byte
    left over by an odd-length buffer is dropped.

    Parameters
    ----------
    buffer : bytes-like or array_like
        Raw capture content.

    Returns
    -------
    tuple of array_like
        ``(i, q)``, both ``uint8`` with length ``len(buffer) // 2``.
    """
    raw, xp = dispatch(buffer)
    raw = raw.astype(xp.uint8, copy=False).ravel()

    n = raw.shape[0] // 2
    if raw.shape[0] % 2:
        logger.debug(f"Dropping dangling trailing byte of {raw.shape[0]}-byte buffer.")

    pairs = raw[: 2 * n].reshape(n, 2)
    return pairs[:, 0].copy(), pairs[:, 1].copy()


def read_iq(path: PathLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reads a ``.cu8`` capture file.

    Parameters
    ----------
    path : str or path-like
        Capture file location.

    Returns
    -------
    tuple of numpy.ndarray
        ``(i, q)`` unsigned 8-bit sample sequences of equal length.

    Raises
    ------
    OSError
        If the file is missing or cannot be read.
    """
    with open(path, "rb") as f:
        raw = np.fromfile(f, dtype=np.uint8)

    logger.debug(f"Read {raw.size} bytes from {os.fspath(path)}.")
    return deinterleave(raw)


def write_iq(path: PathLike, i: ArrayType, q: ArrayType) -> None:
    """
    Writes ``i`` and ``q`` as an interleaved unsigned 8-bit capture.

    Raises
    ------
    ValueError
        If ``i`` and ``q`` differ in length.
    """
    i = to_host(i).astype(np.uint8, copy=False)
    q = to_host(q).astype(np.uint8, copy=False)
    if i.shape != q.shape:
        raise ValueError(f"I and Q lengths differ: {i.shape} vs {q.shape}")

    interleaved = np.empty(2 * i.size, dtype=np.uint8)
    interleaved[0::2] = i.ravel()
    interleaved[1::2] = q.ravel()
    with open(path, "wb") as f:
        interleaved.tofile(f)
