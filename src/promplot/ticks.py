"""Axis tick sources and the label rules that decorate them.

A ``TickSource`` turns an axis range into a list of ``Tick`` values. The
base sources (``LinearTicks``, ``LogTicks``) pick positions with the same
matplotlib locators the renderer would use on its own. The label rules
(``DurationTicks``, ``BytesTicks``, ``TimeTicks``) wrap another source and
only rewrite labels: positions and tick count always come straight from
the wrapped source, so rules can be layered over any source:

    DurationTicks(LogTicks()).ticks(1e9, 1e11)
    # -> ticks at 1e9, 1e10, 1e11 labelled "1s", "10s", "1m40s"
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol, runtime_checkable

import humanize
from matplotlib.ticker import LogLocator, MaxNLocator
from whenever import Instant, TimeDelta

from promplot.models.config import Units

logger = logging.getLogger(__name__)

_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MINUTE = 60 * _NANOS_PER_SECOND
_NANOS_PER_HOUR = 60 * _NANOS_PER_MINUTE
_ONE_NANOSECOND = TimeDelta(nanoseconds=1)

# Sub-second units, largest first
_SUBSECOND_UNITS = (("ms", 1_000_000), ("µs", 1_000), ("ns", 1))

# Locator output may overshoot the view interval by a rounding error
_RANGE_EPSILON = 1e-9

# Multiples tried per decade, sparsest first
_LOG_SUBS = ((1.0,), (1.0, 2.0, 5.0), tuple(float(m) for m in range(1, 10)))


@dataclass(frozen=True)
class Tick:
    """A labelled position on a plot axis."""

    value: float
    label: str


@runtime_checkable
class TickSource(Protocol):
    def ticks(self, vmin: float, vmax: float) -> list[Tick]: ...


def _within(values, vmin: float, vmax: float) -> list[float]:
    slack = (vmax - vmin) * _RANGE_EPSILON
    return [float(v) for v in values if vmin - slack <= v <= vmax + slack]


# =============================================================================
# BASE SOURCES
# =============================================================================


@dataclass(frozen=True)
class LinearTicks:
    """Evenly spaced "nice" positions across a linear range."""

    nbins: int = 9

    def ticks(self, vmin: float, vmax: float) -> list[Tick]:
        if vmin > vmax:
            vmin, vmax = vmax, vmin
        locator = MaxNLocator(nbins=self.nbins, steps=[1, 2, 2.5, 5, 10])
        positions = _within(locator.tick_values(vmin, vmax), vmin, vmax)
        return [Tick(value=v, label=f"{v:g}") for v in positions]


@dataclass(frozen=True)
class LogTicks:
    """Decade positions across a logarithmic range.

    Ranges that hold fewer than two decades fall back to 1-2-5 multiples,
    then to every integer multiple, then to linear positions, so the axis
    always carries labels. Non-positive lower bounds are raised to the
    smallest positive float; a range with no positive values yields no
    ticks.
    """

    base: float = 10.0

    def ticks(self, vmin: float, vmax: float) -> list[Tick]:
        if vmin > vmax:
            vmin, vmax = vmax, vmin
        if vmax <= 0:
            return []
        vmin = max(vmin, sys.float_info.min)
        # Relative tolerance on a log axis
        low, high = vmin * (1 - _RANGE_EPSILON), vmax * (1 + _RANGE_EPSILON)
        for subs in _LOG_SUBS:
            locator = LogLocator(base=self.base, subs=subs)
            positions = [float(v) for v in locator.tick_values(vmin, vmax) if low <= v <= high]
            if len(positions) >= 2:
                return [Tick(value=v, label=f"{v:g}") for v in positions]
        return LinearTicks().ticks(vmin, vmax)


# =============================================================================
# LABEL RULES
# =============================================================================


def format_duration(nanoseconds: int) -> str:
    """Render a nanosecond count as a compact duration (``1m30s``, ``1.5ms``)."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    remaining = abs(nanoseconds)

    if remaining < _NANOS_PER_SECOND:
        for unit, scale in _SUBSECOND_UNITS:
            if remaining >= scale:
                return f"{sign}{_with_fraction(remaining, scale)}{unit}"

    hours, remaining = divmod(remaining, _NANOS_PER_HOUR)
    minutes, remaining = divmod(remaining, _NANOS_PER_MINUTE)
    text = f"{_with_fraction(remaining, _NANOS_PER_SECOND)}s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


def _with_fraction(value: int, scale: int) -> str:
    whole, fraction = divmod(value, scale)
    if not fraction:
        return str(whole)
    digits = len(str(scale)) - 1
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


def format_bytes(value: float) -> str:
    """Render a byte count with binary prefixes (``1024`` -> ``1.0 KiB``).

    Negative counts are clamped to zero.
    """
    return humanize.naturalsize(max(int(value), 0), binary=True, format="%.1f")


def format_time(value: float, truncate: TimeDelta) -> str:
    """Render Unix seconds as an RFC 3339 UTC timestamp floored to ``truncate``."""
    nanos = int(value) * _NANOS_PER_SECOND
    step = round(truncate / _ONE_NANOSECOND)
    if step > 0:
        nanos -= nanos % step
    return Instant.from_timestamp_nanos(nanos).format_iso()


class _Relabel:
    """Decorator base: delegates positions to ``source`` and rewrites labels."""

    source: TickSource

    def label(self, value: float) -> str:
        raise NotImplementedError

    def ticks(self, vmin: float, vmax: float) -> list[Tick]:
        return [replace(t, label=self.label(t.value)) for t in self.source.ticks(vmin, vmax)]


@dataclass(frozen=True)
class DurationTicks(_Relabel):
    """Labels tick values as durations, reading the value as nanoseconds."""

    source: TickSource

    def label(self, value: float) -> str:
        return format_duration(int(value))


@dataclass(frozen=True)
class BytesTicks(_Relabel):
    """Labels tick values as binary byte sizes."""

    source: TickSource

    def label(self, value: float) -> str:
        return format_bytes(value)


@dataclass(frozen=True)
class TimeTicks(_Relabel):
    """Labels tick values as RFC 3339 timestamps."""

    source: TickSource
    truncate: TimeDelta = TimeDelta(seconds=1)

    def label(self, value: float) -> str:
        return format_time(value, self.truncate)


# =============================================================================
# UNIT SELECTION
# =============================================================================


def _unitless(source: TickSource) -> TickSource:
    return source


UNIT_TICKERS: dict[Units, Callable[[TickSource], TickSource]] = {
    Units.DURATION: DurationTicks,
    Units.BYTES: BytesTicks,
    Units.UNITLESS: _unitless,
}


def unit_ticker(units: str) -> Callable[[TickSource], TickSource]:
    """Return the label rule for ``units``.

    Unrecognized values fall back to the identity rule (labels untouched).
    """
    try:
        return UNIT_TICKERS[Units(units)]
    except ValueError:
        logger.warning("Unknown units %r, leaving tick labels unitless", units)
        return _unitless
