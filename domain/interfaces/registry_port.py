from typing_extensions import Protocol
from typing import Optional, Sequence

from .collector_port import Labels


class CounterPort(Protocol):
    def inc(self, labels: Labels = (), amount: float = 1) -> None:
        ...


class GaugePort(Protocol):
    def inc(self, labels: Labels = (), amount: float = 1.0) -> None:
        ...

    def dec(self, labels: Labels = (), amount: float = 1.0) -> None:
        ...


class HistogramPort(Protocol):
    def observe(self, labels: Labels, value: float) -> None:
        ...


class MetricRegistryPort(Protocol):
    """
    Protocol for the metrics registry consumed by the backend adapter.

    Every getter has retrieval-or-create semantics: asking twice for the same
    (namespace, name) returns the same metric instead of registering it again.
    """

    def get_or_register_counter(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
    ) -> CounterPort:
        ...

    def get_or_register_gauge(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
    ) -> GaugePort:
        ...

    def get_or_register_histogram(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
        buckets: Optional[Sequence[float]] = None,
    ) -> HistogramPort:
        ...
