"""
End-to-end decoding of captures.

The pipeline is pure and synchronous: given a capture and the decoder
constants it always returns the same bit strings, and it keeps no state
between calls. Only the file read can fail.

Functions
---------
extract_sequences :
    Unique frame-length bit strings of an in-memory capture.
extract_file :
    Same, reading the capture from disk.
batch_extract :
    Maps each readable file to its unique bit strings.
decode_file :
    Parsed frames of one capture file.
"""

import os
from typing import Dict, Iterable, List, Optional

from .config import DEFAULT_LAYOUT, DecoderConfig, FrameLayout, resolve_config
from .core import Capture
from .demod import demodulate, unique_sequences
from .detection import above_threshold, compute_power, find_intervals
from .frame import ParsedFrame, parse_frame
from .helpers import format_interval
from .logger import logger


def extract_sequences(
    capture: Capture,
    config: Optional[DecoderConfig] = None,
    layout: Optional[FrameLayout] = None,
) -> List[str]:
    """
    Detects bursts in ``capture`` and returns their distinct frame bit strings.

    Parameters
    ----------
    capture : Capture
        Unsigned samples of one recording.
    config : DecoderConfig, optional
        Detection and timing constants. Falls back to the global
        configuration, then to the defaults.
    layout : FrameLayout, optional
        Frame layout; only bit strings of ``layout.total_bits`` are kept.

    Returns
    -------
    list of str
        Distinct bit strings in order of first appearance. Empty when no
        burst reaches ``config.min_signal_length``.
    """
    config = resolve_config(config)
    layout = layout or DEFAULT_LAYOUT

    i, q = capture.normalized()
    mask = above_threshold(compute_power(i, q), config.power_threshold)
    intervals = find_intervals(mask, config.min_signal_length)
    if not intervals:
        logger.debug(f"No signal detected in {capture.source or 'capture'}.")
        return []

    for interval in intervals:
        logger.debug(f"Burst {format_interval(interval, capture.sampling_rate)}")

    sequences = demodulate(i, q, intervals, config.samples_per_bit)
    unique = unique_sequences(sequences, layout.total_bits)
    logger.debug(
        f"{len(unique)} unique {layout.total_bits}-bit sequence(s) "
        f"from {len(intervals)} burst(s)."
    )
    return unique


def extract_file(
    path,
    config: Optional[DecoderConfig] = None,
    layout: Optional[FrameLayout] = None,
) -> List[str]:
    """
    Reads a capture file and returns its distinct frame bit strings.

    Raises
    ------
    OSError
        If the file is missing or unreadable.
    """
    config = resolve_config(config)
    capture = Capture.from_file(path, sampling_rate=config.sampling_rate)
    return extract_sequences(capture, config, layout)


def batch_extract(
    paths: Iterable,
    config: Optional[DecoderConfig] = None,
    layout: Optional[FrameLayout] = None,
) -> Dict[str, List[str]]:
    """
    Extracts the bit strings of several captures.

    A file that cannot be read is logged and left out of the result; the
    remaining files are still processed.

    Returns
    -------
    dict
        Maps ``str(path)`` to the file's distinct bit strings.
    """
    config = resolve_config(config)
    results = {}
    for path in paths:
        try:
            results[os.fspath(path)] = extract_file(path, config, layout)
        except OSError as e:
            logger.error(f"Could not read capture {path}: {e}")
    return results


def decode_file(
    path,
    config: Optional[DecoderConfig] = None,
    layout: Optional[FrameLayout] = None,
) -> List[ParsedFrame]:
    """
    Decodes every distinct frame of a capture file.

    Frames with a mismatching sync word are returned as well; callers are
    expected to check ``ParsedFrame.sync_valid`` before acting on them.

    Raises
    ------
    OSError
        If the file is missing or unreadable.
    """
    layout = layout or DEFAULT_LAYOUT
    frames = [parse_frame(bits, layout) for bits in extract_file(path, config, layout)]
    for frame in frames:
        logger.debug(
            f"{path}: {frame.device_id} {frame.command.value} {frame.battery.value} "
            f"(sync {'ok' if frame.sync_valid else 'mismatch'})"
        )
    return frames
