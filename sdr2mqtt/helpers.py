"""
Small formatting helpers shared by the capture container and the CLI.

Functions
---------
format_si :
    Converts numeric values into human-readable SI-formatted strings.
format_interval :
    Renders an inclusive sample interval with its duration.
"""

from typing import Optional, Tuple

import numpy as np

_SI_PREFIXES = {
    -3: "n",
    -2: "µ",
    -1: "m",
    0: "",
    1: "k",
    2: "M",
    3: "G",
}


def format_si(value: Optional[float], unit: str = "Hz") -> str:
    """
    Formats a numeric value with an SI prefix.

    Parameters
    ----------
    value : float or None
        The numeric value to format. If `None`, returns "None".
    unit : str, default "Hz"
        The unit suffix to append (e.g., 'Hz', 's', 'B').

    Returns
    -------
    str
        The formatted string (e.g., '250.00 kHz', '2.54 ms').
    """
    if value is None:
        return "None"

    if value == 0:
        return f"0.00 {unit}"

    rank = int(np.floor(np.log10(abs(value)) / 3))
    rank = max(min(_SI_PREFIXES), min(rank, max(_SI_PREFIXES)))

    scaled = value / (1000.0**rank)
    return f"{scaled:.2f} {_SI_PREFIXES[rank]}{unit}"


def format_interval(
    interval: Tuple[int, int], sampling_rate: Optional[float] = None
) -> str:
    """
    Renders ``(start, end)`` as ``[start, end] (n samples)``, adding the burst
    duration when the sampling rate is known.
    """
    start, end = interval
    length = end - start + 1
    text = f"[{start}, {end}] ({length} samples"
    if sampling_rate:
        text += f", {format_si(length / sampling_rate, 's')}"
    return text + ")"
