# infrastructure/metrics/metrics.py
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from prometheus_client import Histogram

from domain.exceptions import MetricsError

# Seconds
DURATION_BUCKETS: Tuple[float, ...] = tuple(Histogram.DEFAULT_BUCKETS)
# Bytes
SIZE_BUCKETS: Tuple[float, ...] = (
    64, 256, 1024, 4096, 16384, 65536, 262144, 1048576, 4194304, float("inf")
)


@dataclass(frozen=True)
class MetricDefinition:
    help_text: str
    label_names: Tuple[str, ...] = ()
    buckets: Optional[Tuple[float, ...]] = None


# Metrics emitted by the probes, keyed by full metric name.
# The label order here is the order the probes pass label values in.
METRIC_DEFINITIONS: Dict[str, MetricDefinition] = {
    # Database
    "mysql_connection_dial": MetricDefinition(
        "Time spent dialing a database connection", ("host",), DURATION_BUCKETS
    ),
    "mysql_query_error": MetricDefinition(
        "Failed SQL queries", ("host",)
    ),
    "mysql_query_execution_time": MetricDefinition(
        "SQL query execution time",
        ("operation", "host", "prepared"),  # prepared: "true" for statements
        DURATION_BUCKETS,
    ),
    "mysql_transaction_exec": MetricDefinition(
        "Finished transactions",
        ("host", "status"),  # success|fail|rollback
    ),
    "mysql_transaction_pending": MetricDefinition(
        "Open transactions", ("host",)
    ),

    # Redis
    "redis_connection_dial": MetricDefinition(
        "Time spent dialing a Redis connection", ("host", "success"), DURATION_BUCKETS
    ),
    "redis_operation_error": MetricDefinition(
        "Failed Redis commands", ("host", "command")
    ),
    "redis_operation_exec_count": MetricDefinition(
        "Executed Redis commands", ("host", "command")
    ),
    "redis_operation_exec_time": MetricDefinition(
        "Redis command execution time", ("host", "command"), DURATION_BUCKETS
    ),
    "redis_value_size": MetricDefinition(
        "Approximate size of Redis replies", ("host",), SIZE_BUCKETS
    ),

    # Inbound HTTP
    "http_request_pending": MetricDefinition(
        "In-flight inbound requests", ("route",)
    ),
    "http_request_response_time": MetricDefinition(
        "Inbound request response time", ("route",), DURATION_BUCKETS
    ),
    "http_request_status_code_count": MetricDefinition(
        "Inbound responses by status code", ("status_code", "route")
    ),
    "http_request_body_size": MetricDefinition(
        "Inbound response body size", ("route",), SIZE_BUCKETS
    ),
}

# Outbound HTTP metrics, keyed by suffix; the prefix is configurable ("api" by default)
OUTBOUND_DEFINITIONS: Dict[str, MetricDefinition] = {
    "request_pending": MetricDefinition("In-flight outbound requests"),
    "request_response_time": MetricDefinition(
        "Outbound request response time", (), DURATION_BUCKETS
    ),
    "request_status_code_count": MetricDefinition(
        "Outbound responses by status code", ("status_code",)
    ),
    "request_body_size": MetricDefinition(
        "Outbound response body size", (), SIZE_BUCKETS
    ),
    "request_error": MetricDefinition(
        "Outbound requests that failed without a response", ("error",)
    ),
}


def get_definition(name: str, label_count: int) -> MetricDefinition:
    """
    Look up the definition of a metric.

    Unknown metrics get a generic definition with positional label names
    (label_0, label_1, ...) so they can still be registered.
    """
    definition = METRIC_DEFINITIONS.get(name)
    if definition is not None:
        return definition

    for suffix, outbound in OUTBOUND_DEFINITIONS.items():
        if name.endswith(f"_{suffix}"):
            return outbound

    return MetricDefinition(
        help_text=name,
        label_names=tuple(f"label_{index}" for index in range(label_count)),
    )


def check_outbound_prefix(prefix: str) -> str:
    """
    Return `prefix` if the outbound metric names it produces are free.

    Raises:
        MetricsError: If a name like "{prefix}_request_pending" is already a
            catalog metric (e.g. prefix "http" against the inbound metrics)
    """
    clashes = sorted(
        f"{prefix}_{suffix}"
        for suffix in OUTBOUND_DEFINITIONS
        if f"{prefix}_{suffix}" in METRIC_DEFINITIONS
    )
    if clashes:
        raise MetricsError(f"Outbound prefix {prefix!r} clashes with metrics {clashes}")
    return prefix
