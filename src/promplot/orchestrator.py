"""Run one range query and plot it when the result is a matrix.

Scalar, vector and string results are reported through a callback instead
of plotted. Any failure ends the run: there is no retry and no partial
output.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, assert_never

from promplot.models.config import Units
from promplot.models.results import (
    MatrixResult,
    QueryResult,
    ScalarResult,
    StringResult,
    VectorResult,
)
from promplot.plot import build_plot_spec, count_points, flatten_series, plot_scatter

if TYPE_CHECKING:
    from whenever import Instant, TimeDelta

logger = logging.getLogger(__name__)

# (result type, timestamp in Unix seconds, value)
Reporter = Callable[[str, float, float | str], None]


class RangeQueryBackend(Protocol):
    async def query_range(
        self, query: str, start: Instant, end: Instant, step: TimeDelta
    ) -> QueryResult: ...


@dataclass(frozen=True)
class Outcome:
    """What a run produced."""

    result_type: str
    points: int
    destination: Path | None = None


def log_reporter(result_type: str, timestamp: float, value: float | str) -> None:
    logger.info("%s %s: %s", result_type, timestamp, value)


async def plot_query(
    backend: RangeQueryBackend,
    query: str,
    *,
    start: Instant,
    end: Instant,
    step: TimeDelta,
    destination: str | Path,
    floor: float = 1.0,
    units: str = Units.UNITLESS,
    reporter: Reporter = log_reporter,
) -> Outcome:
    """Query ``backend`` once and render matrix results to ``destination``.

    Cancellation and timeouts are the caller's: wrap the await in
    ``asyncio.timeout`` or cancel the task.

    Args:
        backend: Range-query capable client, usually a PrometheusClient.
        query: PromQL expression; also used as the plot title.
        start: Beginning of the range.
        end: End of the range.
        step: Query resolution.
        destination: Image path; the extension selects the format.
        floor: Values below this are plotted at this value.
        units: Label rule for the value axis (duration, bytes, unitless).
        reporter: Receives non-matrix results.

    Raises:
        BackendError: the query failed.
        UnsupportedResultError: the backend returned an unknown result type.
        RenderError: the plot could not be built or saved.
    """
    logger.info("querying prometheus")
    result = await backend.query_range(query, start, end, step)
    logger.info("received results")

    match result:
        case ScalarResult(result=sample):
            reporter("scalar", sample.timestamp, sample.value)
            return Outcome(result_type="scalar", points=1)
        case VectorResult(result=samples):
            for sample in samples:
                reporter("vector", sample.value.timestamp, sample.value.value)
            return Outcome(result_type="vector", points=len(samples))
        case MatrixResult(result=streams):
            total = count_points(streams)
            logger.info("plotting %d points to %r", total, str(destination))
            spec = build_plot_spec(query, units, destination)
            saved = plot_scatter(spec, flatten_series(streams, floor))
            return Outcome(result_type="matrix", points=total, destination=saved)
        case StringResult(result=sample):
            reporter("string", sample.timestamp, sample.value)
            return Outcome(result_type="string", points=1)
        case _:
            assert_never(result)
