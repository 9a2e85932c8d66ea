"""promplot - scatter-plot a Prometheus range query with readable axis ticks.

Quick Start:
    from whenever import Instant, TimeDelta

    from promplot.orchestrator import plot_query
    from promplot.prometheus import PrometheusClient

    async with PrometheusClient.create("http://prometheus:9090") as client:
        now = Instant.now()
        outcome = await plot_query(
            client,
            "rate(http_requests_total[5m])",
            start=now - TimeDelta(hours=2),
            end=now,
            step=TimeDelta(seconds=20),
            destination="query.png",
        )

The response body is tee'd through a live sparkline on stderr while it
streams in (see ``promplot.transport``).
"""

__version__ = "0.1.0"
