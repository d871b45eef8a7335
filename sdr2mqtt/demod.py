"""
Differential-phase demodulation and bit slicing.

The phase of every sample is computed once over the whole capture. Bits are
then recovered inside each detected burst by integrating the wrapped phase
differences over one symbol period and deciding on the sign of the sum.

Functions
---------
compute_phases :
    Per-sample phase, ``atan2(q, i)``.
compute_phase_diffs :
    Wrapped phase differences between consecutive samples.
slice_bits :
    Integrate-and-dump bit decisions inside one interval.
unique_sequences :
    Deduplicates bit strings and keeps those of the exact frame length.
"""

from typing import Iterable, List, Tuple

import numpy as np

from .backend import ArrayType, dispatch
from .logger import logger


def compute_phases(i: ArrayType, q: ArrayType) -> ArrayType:
    """
    Returns the phase of every sample in radians, in ``(-pi, pi]``.
    """
    i, xp = dispatch(i)
    q, _ = dispatch(q)
    return xp.arctan2(q.astype(xp.float64), i.astype(xp.float64))


def compute_phase_diffs(phases: ArrayType) -> ArrayType:
    """
    Computes wrapped differences between consecutive phases.

    Each difference is corrected by at most one ``2*pi`` step so that it
    lies in ``(-pi, pi]``. This assumes the phase never moves by more than
    ``2*pi`` between two samples, which holds for ``atan2`` outputs.

    Parameters
    ----------
    phases : array_like
        Per-sample phase in radians.

    Returns
    -------
    array_like
        Same length as ``phases``; the first element is 0.
    """
    phases, xp = dispatch(phases)
    diffs = xp.zeros(phases.shape, dtype=xp.float64)
    if phases.size < 2:
        return diffs

    d = phases[1:] - phases[:-1]
    d = xp.where(d > np.pi, d - 2 * np.pi, d)
    d = xp.where(d <= -np.pi, d + 2 * np.pi, d)
    diffs[1:] = d
    return diffs


def slice_bits(
    diffs: ArrayType, interval: Tuple[int, int], samples_per_bit: int
) -> str:
    """
    Recovers the bits carried by one burst.

    The interval is cut into ``floor(length / samples_per_bit)`` symbol
    periods; trailing samples that do not fill a whole period are ignored.
    A symbol is ``'1'`` when the sum of its phase differences is strictly
    positive and ``'0'`` otherwise, including a sum of exactly zero.

    Parameters
    ----------
    diffs : array_like
        Phase differences of the whole capture.
    interval : tuple of int
        Inclusive ``(start, end)`` sample bounds of the burst.
    samples_per_bit : int
        Symbol period in samples.

    Returns
    -------
    str
        Bit string, possibly empty.

    Raises
    ------
    ValueError
        If ``samples_per_bit`` is smaller than 1.
    """
    if samples_per_bit < 1:
        raise ValueError(f"samples_per_bit must be at least 1, got {samples_per_bit}")

    diffs, xp = dispatch(diffs)
    start, end = interval
    symbols = (end - start + 1) // samples_per_bit
    if symbols <= 0:
        return ""

    stop = start + symbols * samples_per_bit
    sums = diffs[start:stop].reshape(symbols, samples_per_bit).sum(axis=1)
    return "".join("1" if bit else "0" for bit in (sums > 0).tolist())


def unique_sequences(sequences: Iterable[str], total_bits: int) -> List[str]:
    """
    Keeps the distinct bit strings of exactly ``total_bits`` characters.

    Order of first appearance is preserved. Strings of any other length are
    partial captures or noise and are dropped silently.
    """
    unique = dict.fromkeys(seq for seq in sequences if len(seq) == total_bits)
    return list(unique)


def demodulate(
    i: ArrayType,
    q: ArrayType,
    intervals: List[Tuple[int, int]],
    samples_per_bit: int,
) -> List[str]:
    """
    Slices every interval of a normalized capture into a bit string.

    Parameters
    ----------
    i, q : array_like
        Normalized (signed) samples of the whole capture.
    intervals : list of tuple of int
        Bursts found by :func:`sdr2mqtt.detection.find_intervals`.
    samples_per_bit : int
        Symbol period in samples.

    Returns
    -------
    list of str
        One bit string per interval, in interval order.
    """
    diffs = compute_phase_diffs(compute_phases(i, q))
    sequences = [slice_bits(diffs, interval, samples_per_bit) for interval in intervals]
    logger.debug(
        f"Sliced {len(sequences)} burst(s) into {[len(s) for s in sequences]} bits."
    )
    return sequences
