"""
Telemetry frame parsing.

A frame is a fixed-length bit string laid out as::

    | preamble (24) | sync (16) | device id (20) | command (3) | battery (1) |

Parsing never fails: fields that cannot be interpreted resolve to an
``UNKNOWN`` member and a sync word mismatch is reported through
``ParsedFrame.sync_valid`` for the caller to act on.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, computed_field

from .config import DEFAULT_LAYOUT, FrameLayout

_NIBBLE_HEX = {format(n, "04b"): format(n, "x") for n in range(16)}


class Command(str, Enum):
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_code(cls, code: str, table: Dict[str, str]) -> "Command":
        name = table.get(code)
        if name in cls.__members__:
            return cls[name]
        return cls.UNKNOWN


class Battery(str, Enum):
    OK = "OK"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_code(cls, code: str, table: Dict[str, str]) -> "Battery":
        name = table.get(code)
        if name in cls.__members__:
            return cls[name]
        return cls.UNKNOWN


class ParsedFrame(BaseModel):
    """
    Decoded fields of one telemetry frame.

    Attributes:
        sync: Raw sync word bits.
        device_id: Device identifier as ``0x``-prefixed lowercase hex.
        command: Door state command.
        battery: Battery status.
        expected_sync: Sync word of the layout the frame was parsed with.
    """

    model_config = ConfigDict(frozen=True)

    sync: str
    device_id: str
    command: Command
    battery: Battery
    expected_sync: str = DEFAULT_LAYOUT.sync_word

    @computed_field
    @property
    def sync_valid(self) -> bool:
        """True when the sync field equals the layout's sync word."""
        return self.sync == self.expected_sync


def bits_to_hex(bits: str) -> str:
    """
    Converts a bit string to hex digits, most significant nibble first.

    The string is left-padded with ``'0'`` to a multiple of 4 bits before it
    is grouped into nibbles. A nibble containing anything other than ``'0'``
    and ``'1'`` is rendered as ``'?'``.

    Examples
    --------
    >>> bits_to_hex("00000000000000000001")
    '00001'
    >>> bits_to_hex("101")
    '5'
    """
    width = -(-len(bits) // 4) * 4
    bits = bits.rjust(width, "0")
    return "".join(_NIBBLE_HEX.get(bits[k : k + 4], "?") for k in range(0, width, 4))


def parse_frame(bits: str, layout: Optional[FrameLayout] = None) -> ParsedFrame:
    """
    Slices a frame bit string into its fields.

    Parameters
    ----------
    bits : str
        Frame bits, normally exactly ``layout.total_bits`` long. Shorter
        input yields truncated fields instead of an error.
    layout : FrameLayout, optional
        Field widths and code tables. Defaults to the door sensor layout.

    Returns
    -------
    ParsedFrame
        The decoded fields. The preamble is discarded.
    """
    layout = layout or DEFAULT_LAYOUT

    pos = layout.preamble_length
    sync = bits[pos : pos + layout.sync_length]
    pos += layout.sync_length
    device_bits = bits[pos : pos + layout.device_id_length]
    pos += layout.device_id_length
    command_bits = bits[pos : pos + layout.command_length]
    pos += layout.command_length
    battery_bits = bits[pos : pos + layout.battery_length]

    return ParsedFrame(
        sync=sync,
        device_id="0x" + bits_to_hex(device_bits),
        command=Command.from_code(command_bits, layout.commands),
        battery=Battery.from_code(battery_bits, layout.battery_codes),
        expected_sync=layout.sync_word,
    )
