"""Configuration models for decoding and publishing.

`DecoderConfig` carries the externally supplied timing constants of a capture
(sampling rate, power threshold, minimum burst length, samples per bit).
`FrameLayout` describes the bit layout of the door sensor telemetry frame, and
`BrokerConfig` the MQTT connection and topic naming. A global decoder
configuration can be set once and is picked up by the pipeline when no explicit
configuration is passed.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DecoderConfig(BaseModel):
    """Timing and detection constants for one family of captures.

    None of these values are discovered from the capture; they must match the
    receiver settings used to record it.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    sampling_rate: Optional[float] = Field(
        None, gt=0, description="Capture sampling rate in Hz"
    )
    bit_rate: Optional[float] = Field(None, gt=0, description="Bit rate in Hz")
    samples_per_bit: int = Field(
        635, ge=1, description="Samples spanned by one transmitted bit"
    )
    power_threshold: float = Field(
        5.0, ge=0, description="Instantaneous power above which a sample is active"
    )
    min_signal_length: int = Field(
        35000, ge=1, description="Minimum active run length, in samples"
    )

    @model_validator(mode="before")
    @classmethod
    def derive_samples_per_bit(cls, data: Any) -> Any:
        """Derive samples_per_bit from sampling_rate / bit_rate when omitted."""
        if not isinstance(data, dict):
            return data
        rate = data.get("sampling_rate")
        bit_rate = data.get("bit_rate")
        if data.get("samples_per_bit") is None and rate and bit_rate:
            data = dict(data)
            data["samples_per_bit"] = max(1, int(round(float(rate) / float(bit_rate))))
        return data

    @classmethod
    def from_yaml(cls, path: str) -> "DecoderConfig":
        """Load configuration from a YAML file.

        A file holding both decoder and broker settings may nest the decoder
        part under a ``decoder`` key.
        """
        return cls.model_validate(_section(_load_yaml(path), "decoder"))

    def to_yaml(self, path: str):
        """Save configuration to a YAML file."""
        _dump_yaml(self.model_dump(), path)


class FrameLayout(BaseModel):
    """Field widths, sync word and code tables of the telemetry frame."""

    model_config = ConfigDict(frozen=True)

    preamble_length: int = Field(24, ge=0)
    sync_length: int = Field(16, ge=1)
    device_id_length: int = Field(20, ge=1)
    command_length: int = Field(3, ge=1)
    battery_length: int = Field(1, ge=1)

    sync_word: str = "0010110111010100"
    commands: Dict[str, str] = Field(
        default_factory=lambda: {"001": "OPEN", "010": "CLOSE"}
    )
    battery_codes: Dict[str, str] = Field(
        default_factory=lambda: {"1": "OK", "0": "LOW"}
    )

    @field_validator("sync_word")
    @classmethod
    def validate_sync_word(cls, v: str) -> str:
        if v.strip("01"):
            raise ValueError("sync_word must contain only '0' and '1'")
        return v

    @model_validator(mode="after")
    def check_sync_width(self) -> "FrameLayout":
        if len(self.sync_word) != self.sync_length:
            raise ValueError(
                f"sync_word has {len(self.sync_word)} bits, expected {self.sync_length}"
            )
        return self

    @property
    def total_bits(self) -> int:
        """Exact length of a complete frame in bits."""
        return (
            self.preamble_length
            + self.sync_length
            + self.device_id_length
            + self.command_length
            + self.battery_length
        )


DEFAULT_LAYOUT = FrameLayout()


class BrokerConfig(BaseModel):
    """MQTT connection settings and topic naming."""

    model_config = ConfigDict(extra="forbid")

    host: str = "homeassistant.local"
    port: int = Field(1883, gt=0, lt=65536)
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = ""
    keepalive: int = Field(60, gt=0)
    discovery_prefix: str = "homeassistant"
    state_prefix: str = "rtl_433"
    extension: str = ".cu8"
    poll_interval: float = Field(1.0, gt=0, description="Directory scan period in s")

    @classmethod
    def from_yaml(cls, path: str) -> "BrokerConfig":
        """Load broker settings, optionally nested under a ``broker`` key."""
        return cls.model_validate(_section(_load_yaml(path), "broker"))

    def to_yaml(self, path: str):
        _dump_yaml(self.model_dump(), path)


def _load_yaml(path: str) -> Any:
    import yaml

    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return {} if data is None else data


def _section(data: Any, key: str) -> Any:
    """Returns ``data[key]`` when present; non-mappings are left for validation."""
    if isinstance(data, dict):
        return data.get(key, data)
    return data


def _dump_yaml(data: Dict[str, Any], path: str):
    import yaml

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# ============================================================================
# Global Configuration Context
# ============================================================================

_global_config: Optional[DecoderConfig] = None


def set_config(config: DecoderConfig):
    """Set the global decoder configuration."""
    global _global_config
    _global_config = config


def get_config() -> Optional[DecoderConfig]:
    """Get the global decoder configuration, or None if not set."""
    return _global_config


def clear_config():
    """Clear the global configuration."""
    global _global_config
    _global_config = None


def require_config() -> DecoderConfig:
    """Get the global configuration, raising an error if not set.

    Raises:
        RuntimeError: If no config is currently set
    """
    config = get_config()
    if config is None:
        raise RuntimeError(
            "No decoder configuration is set. Please call set_config(config) first."
        )
    return config


def resolve_config(config: Optional[DecoderConfig] = None) -> DecoderConfig:
    """Return ``config``, else the global configuration, else the defaults."""
    if config is not None:
        return config
    return get_config() or DecoderConfig()
