"""Pydantic models for promplot.

- config: run settings (``PlotterConfig``) and the ``Units`` label rules
- results: typed Prometheus query results (``QueryResult`` union)
- plot: ``PlotSpec`` for the scatter renderer (import from ``promplot.models.plot``;
  it depends on ``promplot.ticks``, which depends on this package)
"""

from .config import DEFAULT_RESOLUTION, PlotterConfig, Units, parse_duration
from .results import (
    RESULT_TYPES,
    MatrixResult,
    QueryResponse,
    QueryResult,
    Sample,
    SamplePair,
    SampleStream,
    ScalarResult,
    StringResult,
    StringSample,
    VectorResult,
    query_result_adapter,
)

__all__ = [
    "DEFAULT_RESOLUTION",
    "RESULT_TYPES",
    "MatrixResult",
    "PlotterConfig",
    "QueryResponse",
    "QueryResult",
    "Sample",
    "SamplePair",
    "SampleStream",
    "ScalarResult",
    "StringResult",
    "StringSample",
    "Units",
    "VectorResult",
    "parse_duration",
    "query_result_adapter",
]
