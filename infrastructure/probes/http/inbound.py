"""
Inbound HTTP instrumentation for ASGI applications (FastAPI / Starlette).

Measured metrics:

  - http_request_body_size
  - http_request_pending
  - http_request_response_time
  - http_request_status_code_count
"""
import time
from typing import Mapping, Optional

from starlette.datastructures import Headers
from starlette.routing import Match
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from domain.interfaces import Collector

METRICS_ROUTE = "metrics"
INTERNAL_ROUTE_PREFIX = "_"


def is_route_block_listed(
    route: Optional[str],
    metrics_route: str = METRICS_ROUTE,
    internal_prefix: str = INTERNAL_ROUTE_PREFIX,
) -> bool:
    """Requests without a route, to internal routes or to the metrics route itself are not measured."""
    return route is None or route.startswith(internal_prefix) or route == metrics_route


def resolve_route_name(scope: Scope) -> Optional[str]:
    """Name of the application route matching the request, if any."""
    router = getattr(scope.get("app"), "router", None)
    for route in getattr(router, "routes", ()):
        match, _ = route.matches(scope)
        if match == Match.FULL:
            return getattr(route, "name", None)
    return None


def _parse_length(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class RequestMetricsObserver:
    """
    Observes the lifecycle of ONE request.

    The start time lives on the instance, so a new observer must be created
    for every request; HttpMetricsMiddleware does so.
    """

    def __init__(
        self,
        metrics: Collector,
        route: Optional[str],
        metrics_route: str = METRICS_ROUTE,
        internal_prefix: str = INTERNAL_ROUTE_PREFIX,
    ):
        self._metrics = metrics
        self.route = route
        self._blocked = is_route_block_listed(route, metrics_route, internal_prefix)
        self._request_start = 0.0

    def on_request(self) -> None:
        if self._blocked:
            return

        self._request_start = time.perf_counter()
        self._metrics.increment_gauge("http_request_pending", [self.route])

    def on_response(self, status_code: int, headers: Mapping[str, str], body_size: Optional[int] = None) -> None:
        """
        Record the finalized response.

        Args:
            status_code: HTTP status sent to the client
            headers: Response headers (case-insensitive mapping)
            body_size: Length of the materialized body, when known; also used
                when the Content-Length header is not a number
        """
        if self._blocked:
            return

        response_time = time.perf_counter() - self._request_start

        size = _parse_length(headers.get("content-length"))
        if size is None:
            size = float(body_size or 0)

        self._metrics.decrement_gauge("http_request_pending", [self.route])
        self._metrics.observe_histogram("http_request_response_time", response_time, [self.route])
        self._metrics.increment_counter("http_request_status_code_count", [status_code, self.route])
        self._metrics.observe_histogram("http_request_body_size", size, [self.route])


class HttpMetricsMiddleware:
    """
    Pure ASGI middleware firing the observer hooks of each HTTP request.

    Usage:
        app.add_middleware(HttpMetricsMiddleware, metrics=collector)

    An exception escaping the application is recorded as a 500 response and
    re-raised.
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics: Collector,
        metrics_route: str = METRICS_ROUTE,
        internal_prefix: str = INTERNAL_ROUTE_PREFIX,
    ):
        self.app = app
        self._metrics = metrics
        self._metrics_route = metrics_route
        self._internal_prefix = internal_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        observer = RequestMetricsObserver(
            self._metrics,
            resolve_route_name(scope),
            metrics_route=self._metrics_route,
            internal_prefix=self._internal_prefix,
        )
        observer.on_request()

        status_code = 500
        headers = Headers()
        body_size = 0

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, headers, body_size
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = Headers(raw=message.get("headers", []))
            elif message["type"] == "http.response.body":
                body_size += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            observer.on_response(status_code, headers, body_size)
