"""
Capture container.

`Capture` holds the de-interleaved unsigned samples of one recording together
with the metadata that is not stored in the file itself (sampling rate and
origin). It is a thin pydantic model; all processing lives in the
`detection`, `demod` and `pipeline` modules.
"""

from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import helpers, io
from .backend import ArrayType, get_array_module
from .detection import normalize_iq


class Capture(BaseModel):
    """
    Unsigned 8-bit IQ samples of one recording.

    Attributes:
        i: In-phase samples (uint8).
        q: Quadrature samples (uint8), same length as ``i``.
        sampling_rate: Sampling rate in Hz, if known.
        source: File the samples were read from, if any.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    i: Any
    q: Any
    sampling_rate: Optional[float] = Field(default=None, gt=0)
    source: Optional[str] = None

    @field_validator("i", "q", mode="before")
    @classmethod
    def validate_samples(cls, v: Any) -> Any:
        xp = get_array_module(v)
        try:
            v = xp.asarray(v)
        except Exception:
            raise ValueError(f"Unsupported samples type: {type(v)}. Must be array-like.")
        if v.dtype.kind not in "biu":
            raise ValueError(f"Expected unsigned integer samples, got dtype {v.dtype}")
        return v.astype(xp.uint8, copy=False).ravel()

    @model_validator(mode="after")
    def check_lengths(self) -> "Capture":
        if self.i.shape != self.q.shape:
            raise ValueError(
                f"I and Q lengths differ: {self.i.shape[0]} vs {self.q.shape[0]}"
            )
        return self

    @classmethod
    def from_file(cls, path, sampling_rate: Optional[float] = None) -> "Capture":
        """
        Reads a ``.cu8`` capture.

        Raises:
            OSError: If the file is missing or unreadable.
        """
        i, q = io.read_iq(path)
        return cls(i=i, q=q, sampling_rate=sampling_rate, source=str(path))

    @classmethod
    def from_bytes(
        cls,
        buffer: Any,
        sampling_rate: Optional[float] = None,
        source: Optional[str] = None,
    ) -> "Capture":
        """Builds a capture from an in-memory interleaved buffer."""
        i, q = io.deinterleave(buffer)
        return cls(i=i, q=q, sampling_rate=sampling_rate, source=source)

    @property
    def num_samples(self) -> int:
        return int(self.i.shape[0])

    @property
    def duration(self) -> Optional[float]:
        """Duration in seconds, or None when the sampling rate is unknown."""
        if not self.sampling_rate:
            return None
        return self.num_samples / self.sampling_rate

    def normalized(self) -> Tuple[ArrayType, ArrayType]:
        """Signed float samples, ``value - 128``."""
        return normalize_iq(self.i, self.q)

    def print_info(self) -> None:
        """Prints a short summary of the capture."""
        rows = [
            ("Source", self.source or "<memory>"),
            ("Samples", f"{self.num_samples}"),
            ("Sampling rate", helpers.format_si(self.sampling_rate, "Hz")),
            ("Duration", helpers.format_si(self.duration, "s")),
            ("Size", helpers.format_si(2.0 * self.num_samples, "B")),
        ]
        width = max(len(name) for name, _ in rows)
        for name, value in rows:
            print(f"{name:<{width}} : {value}")

    def __len__(self) -> int:
        return self.num_samples

