"""Shared builders for Prometheus API test doubles."""

import io
import json

import httpx

from promplot.prometheus import PrometheusClient
from promplot.transport import SparkTransport


class ChunkStream(httpx.AsyncByteStream):
    """Yields preset chunks, optionally failing after them; counts closes.

    Responses built on it are read by the client through the transport's
    stream, unlike ``content=`` responses which httpx reads up front.
    """

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.close_calls = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.close_calls += 1


def chunked(body: bytes, size: int = 1024) -> list[bytes]:
    return [body[i : i + size] for i in range(0, len(body), size)] or [b""]


def api_body(result_type: str, result) -> bytes:
    """A successful Prometheus API envelope."""
    return json.dumps(
        {"status": "success", "data": {"resultType": result_type, "result": result}}
    ).encode()


def fixed_transport(body: bytes, status_code: int = 200, seen: list | None = None):
    """MockTransport that streams ``body`` in chunks for every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(
            status_code,
            stream=ChunkStream(chunked(body)),
            headers={"Content-Type": "application/json"},
        )

    return httpx.MockTransport(handler)


def mock_client(transport: httpx.AsyncBaseTransport, sink=None) -> PrometheusClient:
    return PrometheusClient(
        httpx.AsyncClient(
            base_url="http://prometheus.test",
            transport=SparkTransport(transport, sink=sink if sink is not None else io.StringIO()),
        )
    )
