"""Prometheus HTTP API client for range queries.

Requests go through ``SparkTransport`` so the response body is drawn as a
sparkline on stderr while it downloads.

Date/Time: Uses `whenever` library (UTC-first, Rust-backed).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self, TextIO

import httpx
from pydantic import ValidationError
from whenever import Instant, TimeDelta

from promplot.errors import BackendError, UnsupportedResultError
from promplot.models.results import (
    RESULT_TYPES,
    QueryResponse,
    QueryResult,
    query_result_adapter,
)
from promplot.transport import SparkTransport

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

QUERY_RANGE_PATH = "/api/v1/query_range"
_ONE_SECOND = TimeDelta(seconds=1)


def _format_seconds(value: float) -> str:
    return f"{value:.3f}".rstrip("0").rstrip(".")


def decode_response(status_code: int, body: bytes) -> QueryResult:
    """Decode a Prometheus API response body into a typed result.

    Raises:
        BackendError: non-success status or an undecodable body.
        UnsupportedResultError: the result type is not one promplot handles.
    """
    try:
        envelope = QueryResponse.model_validate_json(body)
    except ValidationError as exc:
        raise BackendError(
            f"HTTP {status_code}: response is not a Prometheus API envelope"
        ) from exc

    if envelope.status != "success":
        raise BackendError(
            envelope.error or f"HTTP {status_code}",
            error_type=envelope.error_type,
        )
    for warning in envelope.warnings:
        logger.warning("Prometheus warning: %s", warning)

    data = envelope.data or {}
    result_type = data.get("resultType")
    if result_type not in RESULT_TYPES:
        raise UnsupportedResultError(str(result_type))
    try:
        return query_result_adapter.validate_python(data)
    except ValidationError as exc:
        raise BackendError(f"Malformed {result_type} result: {exc}") from exc


class PrometheusClient:
    """Issues range queries against a Prometheus-compatible endpoint."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @classmethod
    def create(
        cls,
        address: str,
        *,
        sink: TextIO | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Build a client whose responses are tee'd through a sparkline on ``sink``.

        Args:
            address: Base URL of the Prometheus server, e.g. ``http://prometheus:9090``.
            sink: Where the sparkline is drawn (stderr when omitted).
            transport: Transport to wrap (a plain HTTP transport when omitted).
        """
        return cls(
            httpx.AsyncClient(
                base_url=address,
                transport=SparkTransport(transport, sink=sink),
            )
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query_range(
        self,
        query: str,
        start: Instant,
        end: Instant,
        step: TimeDelta,
    ) -> QueryResult:
        """Run ``query`` over [start, end] at ``step`` resolution. Single attempt.

        Raises:
            BackendError: the request failed or Prometheus reported an error.
            UnsupportedResultError: the result type is not one promplot handles.
        """
        params = {
            "query": query,
            "start": _format_seconds(start.timestamp_nanos() / 1e9),
            "end": _format_seconds(end.timestamp_nanos() / 1e9),
            "step": _format_seconds(step / _ONE_SECOND),
        }
        try:
            response = await self._client.get(QUERY_RANGE_PATH, params=params)
        except httpx.HTTPError as exc:
            raise BackendError(f"{type(exc).__name__}: {exc}") from exc

        return decode_response(response.status_code, response.content)
