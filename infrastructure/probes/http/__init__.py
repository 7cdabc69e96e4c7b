from .inbound import (
    HttpMetricsMiddleware,
    RequestMetricsObserver,
    is_route_block_listed,
    resolve_route_name,
)
from .outbound import (
    MeasurableAsyncTransport,
    MeasurableTransport,
    create_measured_async_client,
    create_measured_client,
)

__all__ = [
    "HttpMetricsMiddleware",
    "RequestMetricsObserver",
    "is_route_block_listed",
    "resolve_route_name",
    "MeasurableAsyncTransport",
    "MeasurableTransport",
    "create_measured_async_client",
    "create_measured_client",
]
