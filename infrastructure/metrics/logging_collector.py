"""
Collector decorator logging every metric event. Use for debugging purposes.
"""
from domain.entities import MetricEvent, MetricKind
from domain.interfaces import BoundLogger, Collector, Labels


class LoggingCollector:
    """
    Wraps a Collector and logs each event at debug level before forwarding it.

    Logging never changes the outcome: errors raised by the wrapped collector
    propagate as they are.
    """

    def __init__(self, decorated: Collector, logger: BoundLogger):
        self._decorated = decorated
        self._logger = logger

    def _log(self, event: str, name: str, kind: MetricKind, value: float, labels: Labels) -> None:
        metric_event = MetricEvent(name=name, kind=kind, value=value, labels=tuple(labels))
        self._logger.debug(event, **metric_event.log_fields())

    def increment_counter(self, name: str, labels: Labels = ()) -> None:
        self._log("counter_incremented", name, MetricKind.COUNTER, 1, labels)
        self._decorated.increment_counter(name, labels)

    def increment_counter_by(self, name: str, count: int, labels: Labels = ()) -> None:
        self._log("counter_incremented", name, MetricKind.COUNTER, count, labels)
        self._decorated.increment_counter_by(name, count, labels)

    def increment_gauge(self, name: str, labels: Labels = ()) -> None:
        self._log("gauge_incremented", name, MetricKind.GAUGE, 1, labels)
        self._decorated.increment_gauge(name, labels)

    def increment_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._log("gauge_incremented", name, MetricKind.GAUGE, value, labels)
        self._decorated.increment_gauge_by(name, value, labels)

    def decrement_gauge(self, name: str, labels: Labels = ()) -> None:
        self._log("gauge_decremented", name, MetricKind.GAUGE, 1, labels)
        self._decorated.decrement_gauge(name, labels)

    def decrement_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._log("gauge_decremented", name, MetricKind.GAUGE, value, labels)
        self._decorated.decrement_gauge_by(name, value, labels)

    def observe_histogram(self, name: str, value: float, labels: Labels = ()) -> None:
        self._log("histogram_observed", name, MetricKind.HISTOGRAM, value, labels)
        self._decorated.observe_histogram(name, value, labels)
