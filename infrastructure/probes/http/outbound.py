"""
httpx transports measuring outbound requests.

The transport wraps the one doing the I/O, so it sits in the client's
handler chain and sees every request, response and transport failure:

  - {prefix}_request_pending
  - {prefix}_request_response_time
  - {prefix}_request_status_code_count
  - {prefix}_request_body_size
  - {prefix}_request_error

The prefix defaults to METRICS_OUTBOUND_PREFIX ("api"). Prefixes whose names
would collide with other catalog metrics ("http") are rejected.
"""
import time
from typing import Any, AsyncIterator, Callable, Iterator, Optional

import httpx

from domain.config import get_metrics_config
from domain.interfaces import Collector
from infrastructure.metrics.metrics import check_outbound_prefix


class _SizedSyncStream(httpx.SyncByteStream):
    """Counts the bytes of a streamed body and reports the total on close."""

    def __init__(self, stream: httpx.SyncByteStream, on_close: Callable[[int], None]):
        self._stream = stream
        self._on_close = on_close
        self._size = 0
        self._reported = False

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._stream:
            self._size += len(chunk)
            yield chunk

    def close(self) -> None:
        try:
            self._stream.close()
        finally:
            if not self._reported:
                self._reported = True
                self._on_close(self._size)


class _SizedAsyncStream(httpx.AsyncByteStream):
    """Async counterpart of _SizedSyncStream."""

    def __init__(self, stream: httpx.AsyncByteStream, on_close: Callable[[int], None]):
        self._stream = stream
        self._on_close = on_close
        self._size = 0
        self._reported = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._size += len(chunk)
            yield chunk

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            if not self._reported:
                self._reported = True
                self._on_close(self._size)


class _OutboundProbe:
    def __init__(self, metrics: Collector, prefix: Optional[str]):
        self._metrics = metrics
        self._prefix = check_outbound_prefix(prefix or get_metrics_config().outbound_prefix)

    def _name(self, suffix: str) -> str:
        return f"{self._prefix}_{suffix}"

    def on_request(self) -> float:
        self._metrics.increment_gauge(self._name("request_pending"))
        return time.perf_counter()

    def on_failure(self, error: BaseException) -> None:
        self._metrics.decrement_gauge(self._name("request_pending"))
        self._metrics.increment_counter(self._name("request_error"), [type(error).__name__])

    def on_response(self, response: httpx.Response, request_start: float) -> Optional[float]:
        """Record the response; returns the body size when the headers announce it."""
        response_time = time.perf_counter() - request_start

        self._metrics.decrement_gauge(self._name("request_pending"))
        self._metrics.observe_histogram(self._name("request_response_time"), response_time)
        self._metrics.increment_counter(self._name("request_status_code_count"), [response.status_code])

        content_length = response.headers.get("Content-Length")
        if content_length is None:
            return None
        try:
            body_size = float(content_length)
        except ValueError:
            return None
        self.on_body(body_size)
        return body_size

    def on_body(self, size: float) -> None:
        self._metrics.observe_histogram(self._name("request_body_size"), size)


class MeasurableTransport(httpx.BaseTransport):
    """
    Transport decorator for httpx.Client.

    Without a Content-Length header the body size is reported once the
    response stream is closed (i.e. after the body has been read).
    A request failing without a response releases the pending gauge and
    counts a request error labelled with the exception class; the exception
    is re-raised.
    """

    def __init__(
        self,
        metrics: Collector,
        transport: Optional[httpx.BaseTransport] = None,
        prefix: Optional[str] = None,
    ):
        self._transport = transport or httpx.HTTPTransport()
        self._probe = _OutboundProbe(metrics, prefix)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request_start = self._probe.on_request()
        try:
            response = self._transport.handle_request(request)
        except BaseException as e:
            self._probe.on_failure(e)
            raise

        if self._probe.on_response(response, request_start) is None:
            response.stream = _SizedSyncStream(response.stream, self._probe.on_body)
        return response

    def close(self) -> None:
        self._transport.close()


class MeasurableAsyncTransport(httpx.AsyncBaseTransport):
    """Transport decorator for httpx.AsyncClient, see MeasurableTransport."""

    def __init__(
        self,
        metrics: Collector,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        prefix: Optional[str] = None,
    ):
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._probe = _OutboundProbe(metrics, prefix)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        request_start = self._probe.on_request()
        try:
            response = await self._transport.handle_async_request(request)
        except BaseException as e:
            self._probe.on_failure(e)
            raise

        if self._probe.on_response(response, request_start) is None:
            response.stream = _SizedAsyncStream(response.stream, self._probe.on_body)
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def create_measured_client(
    metrics: Collector,
    prefix: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
    **client_options: Any,
) -> httpx.Client:
    """Build an httpx.Client whose requests are measured."""
    return httpx.Client(
        transport=MeasurableTransport(metrics, transport=transport, prefix=prefix),
        **client_options,
    )


def create_measured_async_client(
    metrics: Collector,
    prefix: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    connect_timeout: float = 2.0,
    read_timeout: float = 5.0,
    **client_options: Any,
) -> httpx.AsyncClient:
    """
    Build an httpx.AsyncClient whose requests are measured.

    Args:
        metrics: Collector receiving the metrics
        prefix: Metric name prefix (default: METRICS_OUTBOUND_PREFIX, "api")
        transport: Transport doing the I/O (default: httpx.AsyncHTTPTransport)
        connect_timeout: Connection timeout in seconds (default: 2.0)
        read_timeout: Read timeout in seconds (default: 5.0)
        **client_options: Any other httpx.AsyncClient option
    """
    client_options.setdefault(
        "timeout",
        httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=read_timeout,
            pool=connect_timeout,
        ),
    )
    return httpx.AsyncClient(
        transport=MeasurableAsyncTransport(metrics, transport=transport, prefix=prefix),
        **client_options,
    )
