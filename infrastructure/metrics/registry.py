"""
Metric registry with retrieval-or-create semantics.

The registry hands out counter/gauge/histogram handles keyed by
(namespace, name) and writes samples to a pluggable storage. It implements
the prometheus_client custom collector protocol, so it can be registered in a
CollectorRegistry and rendered by generate_latest().
"""
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from prometheus_client import Histogram
from prometheus_client.metrics_core import Metric

from domain.entities import MetricKind
from domain.exceptions import LabelCardinalityError, MetricsError, MetricTypeConflictError
from domain.interfaces import LabelValue, Labels
from infrastructure.metrics.storage import MetricSpec, Storage


def full_name(namespace: str, name: str) -> str:
    return f"{namespace}_{name}" if namespace else name


def render_label_value(value: LabelValue) -> str:
    """Label values are exported as strings; booleans as "true"/"false"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _normalize_buckets(buckets: Optional[Sequence[float]]) -> Tuple[float, ...]:
    bounds = sorted(float(bound) for bound in (buckets or Histogram.DEFAULT_BUCKETS))
    if bounds[-1] != float("inf"):
        bounds.append(float("inf"))
    return tuple(bounds)


class _MetricHandle:
    def __init__(self, spec: MetricSpec, storage: Storage):
        self.spec = spec
        self._storage = storage

    def _label_values(self, labels: Labels) -> Tuple[str, ...]:
        values = tuple(render_label_value(value) for value in labels)
        if len(values) != len(self.spec.label_names):
            raise LabelCardinalityError(
                f"{self.spec.name} expects labels {list(self.spec.label_names)}, got {list(values)}"
            )
        return values


class CounterHandle(_MetricHandle):
    def inc(self, labels: Labels = (), amount: float = 1) -> None:
        if amount < 0:
            raise MetricsError(f"Counter {self.spec.name} cannot be decremented")
        self._storage.update_counter(self.spec, self._label_values(labels), amount)


class GaugeHandle(_MetricHandle):
    def inc(self, labels: Labels = (), amount: float = 1.0) -> None:
        self._storage.update_gauge(self.spec, self._label_values(labels), amount)

    def dec(self, labels: Labels = (), amount: float = 1.0) -> None:
        self._storage.update_gauge(self.spec, self._label_values(labels), -amount)


class HistogramHandle(_MetricHandle):
    def observe(self, labels: Labels, value: float) -> None:
        self._storage.update_histogram(self.spec, self._label_values(labels), value)


_HANDLE_CLASSES = {
    MetricKind.COUNTER: CounterHandle,
    MetricKind.GAUGE: GaugeHandle,
    MetricKind.HISTOGRAM: HistogramHandle,
}


class MetricRegistry:
    """
    Registry that implements MetricRegistryPort.

    The first definition registered for a (namespace, name) wins for the
    lifetime of the registry, which keeps label ordering stable.
    """

    def __init__(self, storage: Storage):
        self._storage = storage
        self._metrics: Dict[Tuple[str, str], _MetricHandle] = {}
        self._lock = threading.Lock()

    @property
    def storage(self) -> Storage:
        return self._storage

    def get_or_register_counter(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
    ) -> CounterHandle:
        return self._get_or_register(MetricKind.COUNTER, namespace, name, help_text, label_names)

    def get_or_register_gauge(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
    ) -> GaugeHandle:
        return self._get_or_register(MetricKind.GAUGE, namespace, name, help_text, label_names)

    def get_or_register_histogram(
        self,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
        buckets: Optional[Sequence[float]] = None,
    ) -> HistogramHandle:
        return self._get_or_register(
            MetricKind.HISTOGRAM, namespace, name, help_text, label_names, buckets
        )

    def _get_or_register(
        self,
        kind: MetricKind,
        namespace: str,
        name: str,
        help_text: str,
        label_names: Sequence[str],
        buckets: Optional[Sequence[float]] = None,
    ):
        key = (namespace, name)
        with self._lock:
            handle = self._metrics.get(key)
            if handle is None:
                spec = MetricSpec(
                    kind=kind,
                    name=full_name(namespace, name),
                    help_text=help_text,
                    label_names=tuple(label_names),
                    buckets=_normalize_buckets(buckets) if kind is MetricKind.HISTOGRAM else (),
                )
                handle = _HANDLE_CLASSES[kind](spec, self._storage)
                self._metrics[key] = handle

        if handle.spec.kind is not kind:
            raise MetricTypeConflictError(
                f"{handle.spec.name} is a {handle.spec.kind.value}, not a {kind.value}"
            )
        return handle

    def collect(self) -> List[Metric]:
        """prometheus_client custom collector hook."""
        return self._storage.collect()

    def wipe(self) -> None:
        self._storage.wipe()
