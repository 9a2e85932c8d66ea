"""Typer CLI for promplot.

    promplot --addr http://prometheus:9090 --from 6h --units duration \\
        'histogram_quantile(0.99, sum by (le) (rate(http_request_duration_seconds_bucket[5m]))) * 1e9'

Positional arguments are joined with spaces to form the query. Options fall
back to ``PROMPLOT_*`` environment variables, then to built-in defaults.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from whenever import Instant

from promplot.errors import ConfigError, PromPlotError
from promplot.models.config import PlotterConfig
from promplot.orchestrator import Outcome, plot_query
from promplot.prometheus import PrometheusClient

app = typer.Typer(
    name="promplot",
    help="Scatter-plot a Prometheus range query with human-readable axes",
    no_args_is_help=True,
    add_completion=False,
)
console = Console(stderr=True)

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "matplotlib")


def setup_logging(level: str) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def load_config(**options: object) -> PlotterConfig:
    """Build the run config from CLI options layered over the environment."""
    given = {key: value for key, value in options.items() if value is not None}
    try:
        config = PlotterConfig(**given)
    except ValidationError as exc:
        details = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigError(f"Invalid configuration: {details}") from exc
    if not config.addr:
        raise ConfigError("no prometheus address specified (--addr or PROMPLOT_ADDR)")
    return config


def open_client(config: PlotterConfig) -> PrometheusClient:
    return PrometheusClient.create(config.addr)


async def run(config: PlotterConfig, query: str) -> Outcome:
    """Execute one query/plot run for ``config``."""
    now = Instant.now()
    async with open_client(config) as client:
        return await plot_query(
            client,
            query,
            start=now - config.from_ago,
            end=now - config.to_ago,
            step=config.effective_step,
            destination=config.out,
            floor=config.floor,
            units=config.units,
        )


@app.command()
def main(
    query: Annotated[
        list[str] | None, typer.Argument(help="PromQL query; words are joined with spaces")
    ] = None,
    addr: Annotated[
        str | None, typer.Option("--addr", help="Address of the Prometheus to query")
    ] = None,
    from_ago: Annotated[
        str | None,
        typer.Option("--from", help="Fetch metrics starting this far in the past [default: 2h]"),
    ] = None,
    to_ago: Annotated[
        str | None,
        typer.Option("--to", help="Fetch metrics up to this far in the past [default: 1s]"),
    ] = None,
    step: Annotated[
        str | None,
        typer.Option("--step", help="Fetch a data point every step [default: (from-to)/360]"),
    ] = None,
    out: Annotated[
        str | None,
        typer.Option("--out", "-o", help="Where to save the plot, including extension"),
    ] = None,
    floor: Annotated[
        float | None, typer.Option("--min", help="Smallest value to plot [default: 1.0]")
    ] = None,
    units: Annotated[
        str | None,
        typer.Option("--units", help="Units of the values: duration, bytes or unitless"),
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Logging level [default: INFO]")
    ] = None,
) -> None:
    """Query Prometheus over a time window and save the result as a scatter plot."""
    try:
        config = load_config(
            addr=addr,
            from_ago=from_ago,
            to_ago=to_ago,
            step=step,
            out=out,
            floor=floor,
            units=units,
            log_level=log_level,
        )
        text = " ".join(query or []).strip()
        if not text:
            raise ConfigError("no query specified")
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from None

    setup_logging(config.log_level)
    try:
        outcome = asyncio.run(run(config, text))
    except PromPlotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if outcome.destination is not None:
        console.print(f"[green]✓[/green] Plotted {outcome.points} points to {outcome.destination}")


if __name__ == "__main__":
    app()
