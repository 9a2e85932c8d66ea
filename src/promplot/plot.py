"""Scatter rendering of range-query results.

Every sample of every series becomes one point; series are not told
apart. The value axis is logarithmic, so values under the configured floor
(including zero) are raised to it before plotting.
"""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import NamedTuple

from matplotlib.figure import Figure

from promplot.errors import RenderError
from promplot.models.plot import PlotSpec
from promplot.models.results import SampleStream
from promplot.ticks import LinearTicks, LogTicks, TimeTicks, unit_ticker

logger = logging.getLogger(__name__)

POINT_COLOR = "#a6bddb"
POINT_ALPHA = 0.6
POINT_SIZE = 4


class Point(NamedTuple):
    x: float  # Unix seconds
    y: float


def count_points(streams: Iterable[SampleStream]) -> int:
    """Total number of samples across all series."""
    return sum(len(stream.values) for stream in streams)


def flatten_series(streams: Iterable[SampleStream], floor: float) -> list[Point]:
    """Flatten labelled series into scatter points, clamping values below ``floor``."""
    points: list[Point] = []
    for stream in streams:
        for sample in stream.values:
            value = floor if sample.value < floor else sample.value
            points.append(Point(x=float(int(sample.timestamp)), y=value))
    return points


def build_plot_spec(title: str, units: str, destination: str | Path) -> PlotSpec:
    """The standard spec: log10 value axis labelled per ``units``, time on X."""
    return PlotSpec(
        title=title,
        y_ticks=unit_ticker(units)(LogTicks()),
        x_ticks=TimeTicks(LinearTicks()),
        destination=Path(destination),
    )


def _apply_ticks(axis, source, limits: tuple[float, float]) -> None:
    ticks = source.ticks(*limits)
    axis.set_ticks([t.value for t in ticks], labels=[t.label for t in ticks])
    axis.set_ticks([], minor=True)


def plot_scatter(spec: PlotSpec, points: Sequence[Point]) -> Path:
    """Render ``points`` as a scatter plot and save it to ``spec.destination``.

    Raises:
        RenderError: the figure could not be built or written.
    """
    fig = Figure(figsize=(spec.width_in, spec.height_in), dpi=spec.dpi)
    try:
        ax = fig.add_subplot()
        ax.set_title(spec.title)
        ax.set_xlabel(spec.x_label)
        ax.set_ylabel(spec.y_label)
        ax.grid(True)
        ax.set_axisbelow(True)

        ax.scatter(
            [p.x for p in points],
            [p.y for p in points],
            marker="+",
            s=POINT_SIZE,
            linewidths=0.5,
            color=POINT_COLOR,
            alpha=POINT_ALPHA,
        )
        ax.set_yscale("log", base=10)

        xlim = ax.get_xlim()
        ylim = ax.get_ylim()
        _apply_ticks(ax.yaxis, spec.y_ticks, ylim)
        _apply_ticks(ax.xaxis, spec.x_ticks, xlim)
        # Setting ticks may widen the view; keep the data limits
        ax.set_xlim(xlim)
        ax.set_ylim(ylim)
        fig.autofmt_xdate()
    except ValueError as exc:
        raise RenderError(f"Failed to build plot: {exc}") from exc

    try:
        fig.savefig(spec.destination)
    except (OSError, ValueError) as exc:
        raise RenderError(f"Failed to save plot to {spec.destination}: {exc}") from exc

    logger.info("Saved %d points to %s", len(points), spec.destination)
    return spec.destination
