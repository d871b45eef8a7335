"""
Burst detection on unsigned 8-bit IQ captures.

Functions
---------
normalize_iq :
    Recenters unsigned samples to signed floating point values.
compute_power :
    Instantaneous power of every sample.
above_threshold :
    Boolean activity mask against a fixed power threshold.
find_intervals :
    Maximal contiguous active runs of at least a minimum length.
"""

from typing import List, Tuple

from .backend import ArrayType, dispatch
from .logger import logger

# Fixed recentering offset. The true midpoint of the unsigned range is 127.5;
# the half-unit bias is kept so decisions match the deployed decoder.
IQ_OFFSET = 128


def normalize_iq(i: ArrayType, q: ArrayType) -> Tuple[ArrayType, ArrayType]:
    """
    Converts unsigned samples to signed floats by subtracting 128.

    Parameters
    ----------
    i, q : array_like
        Unsigned 8-bit in-phase and quadrature samples.

    Returns
    -------
    tuple of array_like
        ``(i - 128, q - 128)`` as ``float32``.
    """
    i, xp = dispatch(i)
    q, _ = dispatch(q)
    return (
        i.astype(xp.float32) - IQ_OFFSET,
        q.astype(xp.float32) - IQ_OFFSET,
    )


def compute_power(i: ArrayType, q: ArrayType) -> ArrayType:
    """
    Returns ``i**2 + q**2`` for every sample. No reference scaling is applied.
    """
    i, xp = dispatch(i)
    q, _ = dispatch(q)
    i = i.astype(xp.float32, copy=False)
    q = q.astype(xp.float32, copy=False)
    return i * i + q * q


def above_threshold(power: ArrayType, threshold: float) -> ArrayType:
    """
    Returns the boolean mask ``power > threshold`` (strict inequality).
    """
    power, _ = dispatch(power)
    return power > threshold


def find_intervals(mask: ArrayType, min_length: int) -> List[Tuple[int, int]]:
    """
    Finds maximal runs of active samples.

    A run starts at an active sample that follows an inactive one (or the
    start of the buffer) and ends at the sample preceding the next inactive
    one (or the end of the buffer). A single inactive sample splits a run.

    Parameters
    ----------
    mask : array_like of bool
        Per-sample activity flags.
    min_length : int
        Minimum run length in samples; shorter runs are discarded.

    Returns
    -------
    list of tuple of int
        Inclusive ``(start, end)`` bounds, ordered by start and disjoint.

    Raises
    ------
    ValueError
        If ``min_length`` is smaller than 1.

    Examples
    --------
    >>> find_intervals([0, 1, 1, 1, 0, 1, 1, 0, 0, 1, 1, 1, 1], 3)
    [(1, 3), (9, 12)]
    """
    if min_length < 1:
        raise ValueError(f"min_length must be at least 1, got {min_length}")

    mask, xp = dispatch(mask)
    flags = (mask != 0).astype(xp.int8).ravel()
    if flags.size == 0:
        return []

    edges = xp.diff(xp.concatenate([xp.zeros(1, xp.int8), flags, xp.zeros(1, xp.int8)]))
    starts = xp.nonzero(edges == 1)[0]
    stops = xp.nonzero(edges == -1)[0]

    keep = (stops - starts) >= min_length
    intervals = [
        (int(start), int(stop) - 1)
        for start, stop in zip(starts[keep].tolist(), stops[keep].tolist())
    ]

    logger.debug(
        f"Found {len(intervals)} interval(s) of >= {min_length} samples "
        f"out of {starts.size} active run(s)."
    )
    return intervals
