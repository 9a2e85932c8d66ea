"""HTTP transport that draws a live sparkline of response bodies as they stream.

``SparkTransport`` wraps any ``httpx.AsyncBaseTransport``. Each response it
returns carries a ``TeeByteStream`` in place of its body stream: the caller
still receives exactly the bytes, chunk boundaries and errors of the
original body, while a ``StreamTap`` renders the download throughput as a
one-line sparkline on a side channel (stderr by default).

    client = httpx.AsyncClient(transport=SparkTransport(httpx.AsyncHTTPTransport()))

The tap keeps a fixed-size window of per-interval byte counts and does a
bounded amount of work per chunk. No background task or thread is started.
Cancelling the caller's task cancels the wrapped transport's request; the
tee neither catches nor delays the cancellation.
"""

from __future__ import annotations

import logging
import sys
import time
from collections import deque
from collections.abc import AsyncIterator, Callable, Sequence
from typing import TextIO

import httpx
import humanize

logger = logging.getLogger(__name__)

SPARK_RAMP = "▁▂▃▄▅▆▇█"

DEFAULT_WIDTH = 40
DEFAULT_INTERVAL = 0.1  # seconds per sparkline bucket


def render_sparkline(values: Sequence[float]) -> str:
    """Map non-negative values onto the block ramp, scaled to the window max."""
    if not values:
        return ""
    hi = max(values)
    if hi <= 0:
        return SPARK_RAMP[0] * len(values)
    last = len(SPARK_RAMP) - 1
    return "".join(SPARK_RAMP[min(last, max(0, round(v / hi * last)))] for v in values)


class StreamTap:
    """Rolling throughput view over one in-flight response body."""

    def __init__(
        self,
        sink: TextIO,
        *,
        width: int = DEFAULT_WIDTH,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self._width = width
        self._interval = interval
        self._clock = clock
        self._window: deque[int] = deque(maxlen=width)
        self._bucket = 0
        self._bucket_started = clock()
        self._last_render: float | None = None
        self._finished = False
        self._broken = False
        self.total = 0

    @property
    def window(self) -> list[int]:
        """Completed buckets followed by the bucket being filled."""
        return [*self._window, self._bucket]

    @property
    def rate(self) -> float:
        """Bytes per second over the window, including the bucket being filled."""
        elapsed = len(self._window) * self._interval + (self._clock() - self._bucket_started)
        if elapsed <= 0:
            return 0.0
        return (sum(self._window) + self._bucket) / elapsed

    def observe(self, nbytes: int) -> None:
        """Account for ``nbytes`` just delivered to the caller."""
        now = self._clock()
        self._roll(now)
        self._bucket += nbytes
        self.total += nbytes
        if self._last_render is None or now - self._last_render >= self._interval:
            self._last_render = now
            self._write("\r" + self.render())

    def finish(self) -> None:
        """Draw the final line. Only the first call has any effect."""
        if self._finished:
            return
        self._finished = True
        self._write("\r" + self.render() + "\n")

    def render(self) -> str:
        total = humanize.naturalsize(self.total, binary=True)
        rate = humanize.naturalsize(self.rate, binary=True)
        return f"{render_sparkline(self.window)} {total} {rate}/s"

    def _roll(self, now: float) -> None:
        elapsed = now - self._bucket_started
        if elapsed < self._interval:
            return
        periods = int(elapsed // self._interval)
        self._window.append(self._bucket)
        # Intervals with no data show as zero; more than a full window is moot
        for _ in range(min(periods - 1, self._width)):
            self._window.append(0)
        self._bucket = 0
        self._bucket_started += periods * self._interval

    def _write(self, text: str) -> None:
        if self._broken:
            return
        try:
            self._sink.write(text)
            self._sink.flush()
        except (OSError, ValueError):
            # Sink failures never reach the body consumer
            logger.debug("Sparkline sink unavailable, disabling it", exc_info=True)
            self._broken = True


class TeeByteStream(httpx.AsyncByteStream):
    """Body stream that forwards every chunk unchanged and reports it to a tap.

    Owns the wrapped stream: ``aclose`` closes it exactly once, however many
    times it is called and whether or not iteration failed.
    """

    def __init__(self, stream: httpx.AsyncByteStream, tap: StreamTap) -> None:
        self._stream = stream
        self._tap = tap
        self._closed = False

    @property
    def tap(self) -> StreamTap:
        return self._tap

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._tap.observe(len(chunk))
            yield chunk
        self._tap.finish()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stream.aclose()
        finally:
            self._tap.finish()


class SparkTransport(httpx.AsyncBaseTransport):
    """Transport decorator that tees every response body through a StreamTap."""

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport | None = None,
        *,
        sink: TextIO | None = None,
        width: int = DEFAULT_WIDTH,
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._wrapped = wrapped if wrapped is not None else httpx.AsyncHTTPTransport()
        self._sink = sink
        self._width = width
        self._interval = interval
        self._clock = clock

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # Failures (including cancellation) propagate before any tap exists
        response = await self._wrapped.handle_async_request(request)
        if not isinstance(response.stream, httpx.AsyncByteStream):
            raise TypeError("SparkTransport requires an async response stream")
        tap = StreamTap(
            self._sink if self._sink is not None else sys.stderr,
            width=self._width,
            interval=self._interval,
            clock=self._clock,
        )
        response.stream = TeeByteStream(response.stream, tap)
        return response

    async def aclose(self) -> None:
        await self._wrapped.aclose()
