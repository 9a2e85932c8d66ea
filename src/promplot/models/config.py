"""Run configuration for promplot.

Values come from ``PROMPLOT_*`` environment variables and are overridden by
CLI options. Durations accept Go-style strings (``90s``, ``1h30m``,
``250ms``) as well as ISO 8601 (``PT2H``).
"""

import re
from enum import StrEnum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings
from whenever import TimeDelta

from promplot.errors import ConfigError

# Samples per plot when no explicit step is given
DEFAULT_RESOLUTION = 360

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


class Units(StrEnum):
    """Label rule applied to the value (Y) axis."""

    DURATION = "duration"  # values are nanoseconds
    BYTES = "bytes"  # values are byte counts
    UNITLESS = "unitless"  # labels left as plain numbers


def parse_duration(text: str) -> TimeDelta:
    """Parse ``1h30m``/``90s``/``250ms`` or an ISO 8601 duration into a TimeDelta."""
    raw = text.strip()
    if not raw:
        raise ConfigError("Empty duration")
    if raw.upper().startswith(("P", "-P", "+P")):
        try:
            return TimeDelta.parse_iso(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid duration '{text}'") from exc

    sign = 1
    body = raw
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return TimeDelta()

    nanos = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(body):
        if match.start() != pos:
            break
        nanos += float(match.group(1)) * _UNIT_NANOS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(body):
        raise ConfigError(f"Invalid duration '{text}'")
    return TimeDelta(nanoseconds=sign * round(nanos))


class PlotterConfig(BaseSettings):
    """Settings for a single query-and-plot run."""

    addr: str = Field(default="", description="Address of the Prometheus to query")
    from_ago: TimeDelta = Field(
        default=TimeDelta(hours=2),
        description="Fetch metrics starting from this far in the past",
    )
    to_ago: TimeDelta = Field(
        default=TimeDelta(seconds=1),
        description="Fetch metrics up to this far in the past",
    )
    step: TimeDelta | None = Field(
        default=None,
        description="Resolution of the range query; defaults to (from - to) / 360",
    )
    out: str = Field(default="query.png", description="Where to save the plot, with extension")
    floor: float = Field(
        default=1.0, description="Smallest value to plot; lower values are clamped"
    )
    units: str = Field(
        default=Units.UNITLESS.value,
        description="Units of the plotted values: duration, bytes or unitless",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = {
        "env_prefix": "PROMPLOT_",
        "arbitrary_types_allowed": True,
    }

    @field_validator("from_ago", "to_ago", "step", mode="before")
    @classmethod
    def _coerce_duration(cls, value):
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @model_validator(mode="after")
    def _check_window(self):
        if self.from_ago <= self.to_ago:
            raise ValueError(
                f"'from' ({self.from_ago.format_iso()}) must be further in the past than "
                f"'to' ({self.to_ago.format_iso()})"
            )
        if self.step is not None and self.step <= TimeDelta():
            raise ValueError("'step' must be positive")
        return self

    @property
    def effective_step(self) -> TimeDelta:
        """The configured step, or the window split into DEFAULT_RESOLUTION samples."""
        if self.step is not None:
            return self.step
        return (self.from_ago - self.to_ago) / DEFAULT_RESOLUTION
