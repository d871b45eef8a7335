"""
sdr2mqtt: door sensor telemetry from raw IQ captures.

This package provides tools for:
- Loading interleaved unsigned 8-bit IQ captures (``.cu8``).
- Detecting bursts of energy and demodulating them by differential phase.
- Parsing the fixed telemetry frame (sync word, device id, command, battery).
- Announcing devices and publishing their state to Home Assistant over MQTT.
"""

from .config import (
    DEFAULT_LAYOUT,
    BrokerConfig,
    DecoderConfig,
    FrameLayout,
    clear_config,
    get_config,
    require_config,
    set_config,
)
from .core import Capture
from .frame import Battery, Command, ParsedFrame, parse_frame
from .logger import set_log_level
from .pipeline import batch_extract, decode_file, extract_file, extract_sequences

__all__ = [
    "Capture",
    "DecoderConfig",
    "FrameLayout",
    "BrokerConfig",
    "DEFAULT_LAYOUT",
    "set_config",
    "get_config",
    "clear_config",
    "require_config",
    "ParsedFrame",
    "Command",
    "Battery",
    "parse_frame",
    "extract_sequences",
    "extract_file",
    "batch_extract",
    "decode_file",
    "set_log_level",
]
