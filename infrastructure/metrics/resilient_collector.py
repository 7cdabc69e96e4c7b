"""
Collector decorator isolating callers from metrics storage outages.

When the storage behind the metrics backend is a Redis instance, every metric
write is a network call. A lost metric is acceptable; an instrumented query
or cache call failing because Redis is down is not.
"""
from typing import Optional

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from domain.interfaces import BoundLogger, Collector, Labels
from infrastructure.logging.logging_adapter import metrics_logger

TRANSPORT_ERRORS = (RedisConnectionError, RedisTimeoutError)


class ResilientCollector:
    """
    Wraps a Collector and discards Redis transport errors.

    Failed writes are dropped without retry. Any other exception propagates
    unchanged.
    """

    def __init__(self, decorated: Collector, logger: Optional[BoundLogger] = None):
        """
        Args:
            decorated: Collector doing the writes
            logger: Receives a debug record per dropped write (default: metrics logger)
        """
        self._decorated = decorated
        self._logger = logger or metrics_logger(step="resilient_collector")

    def _run(self, operation: str, name: str, call) -> None:
        try:
            call()
        except TRANSPORT_ERRORS as e:
            self._logger.debug(
                "metric_dropped",
                operation=operation,
                metric=name,
                error=str(e),
            )

    def increment_counter(self, name: str, labels: Labels = ()) -> None:
        self._run("increment_counter", name, lambda: self._decorated.increment_counter(name, labels))

    def increment_counter_by(self, name: str, count: int, labels: Labels = ()) -> None:
        self._run(
            "increment_counter_by", name,
            lambda: self._decorated.increment_counter_by(name, count, labels),
        )

    def increment_gauge(self, name: str, labels: Labels = ()) -> None:
        self._run("increment_gauge", name, lambda: self._decorated.increment_gauge(name, labels))

    def increment_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._run(
            "increment_gauge_by", name,
            lambda: self._decorated.increment_gauge_by(name, value, labels),
        )

    def decrement_gauge(self, name: str, labels: Labels = ()) -> None:
        self._run("decrement_gauge", name, lambda: self._decorated.decrement_gauge(name, labels))

    def decrement_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._run(
            "decrement_gauge_by", name,
            lambda: self._decorated.decrement_gauge_by(name, value, labels),
        )

    def observe_histogram(self, name: str, value: float, labels: Labels = ()) -> None:
        self._run(
            "observe_histogram", name,
            lambda: self._decorated.observe_histogram(name, value, labels),
        )
