"""
Metrics adapter that implements the Collector protocol.

This adapter translates Collector calls into get-or-create calls on a metric
registry, then increments, decrements or observes the returned metric.
"""
from typing import Tuple

from domain.interfaces import Labels, MetricRegistryPort
from infrastructure.metrics.metrics import get_definition


def split_name(name: str, separator: str = "_") -> Tuple[str, str]:
    """
    Split a metric name into (namespace, short name) on the first separator.

    >>> split_name("mysql_query_error")
    ('mysql', 'query_error')
    >>> split_name("counter")
    ('', 'counter')
    """
    namespace, found, short_name = name.partition(separator)
    if not found:
        return "", name
    return namespace, short_name


class PrometheusCollector:
    """
    Adapter that implements Collector on top of a MetricRegistry.

    Help texts, label names and buckets come from the metric catalog
    (infrastructure.metrics.metrics); the registry reuses a metric once it
    has been created, so repeated calls accumulate in the same series.
    """

    def __init__(self, registry: MetricRegistryPort, separator: str = "_"):
        """
        Initialize the metrics adapter.

        Args:
            registry: Registry creating and storing the metrics
            separator: Character splitting the namespace from the metric name
        """
        self._registry = registry
        self._separator = separator

    @property
    def registry(self) -> MetricRegistryPort:
        return self._registry

    def _counter(self, name: str, labels: Labels):
        namespace, short_name = split_name(name, self._separator)
        definition = get_definition(name, len(labels))
        return self._registry.get_or_register_counter(
            namespace, short_name, definition.help_text, definition.label_names
        )

    def _gauge(self, name: str, labels: Labels):
        namespace, short_name = split_name(name, self._separator)
        definition = get_definition(name, len(labels))
        return self._registry.get_or_register_gauge(
            namespace, short_name, definition.help_text, definition.label_names
        )

    def _histogram(self, name: str, labels: Labels):
        namespace, short_name = split_name(name, self._separator)
        definition = get_definition(name, len(labels))
        return self._registry.get_or_register_histogram(
            namespace, short_name, definition.help_text, definition.label_names, definition.buckets
        )

    def increment_counter(self, name: str, labels: Labels = ()) -> None:
        self._counter(name, labels).inc(labels)

    def increment_counter_by(self, name: str, count: int, labels: Labels = ()) -> None:
        self._counter(name, labels).inc(labels, count)

    def increment_gauge(self, name: str, labels: Labels = ()) -> None:
        self._gauge(name, labels).inc(labels)

    def increment_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._gauge(name, labels).inc(labels, value)

    def decrement_gauge(self, name: str, labels: Labels = ()) -> None:
        self._gauge(name, labels).dec(labels)

    def decrement_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        self._gauge(name, labels).dec(labels, value)

    def observe_histogram(self, name: str, value: float, labels: Labels = ()) -> None:
        self._histogram(name, labels).observe(labels, value)
