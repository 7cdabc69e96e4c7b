"""
Sample storages behind the metric registry.

InMemoryStorage keeps samples inside the process using prometheus_client
native metrics. RedisStorage keeps them in Redis hashes so every worker
process of a service reports into the same series and the exposition route
of any worker renders all of them.
"""
import json
import threading
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Union

from typing_extensions import Protocol
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    HistogramMetricFamily,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.utils import floatToGoString

from domain.entities import MetricKind

DEFAULT_PREFIX = "PROMETHEUS_"


@dataclass(frozen=True)
class MetricSpec:
    kind: MetricKind
    name: str
    help_text: str
    label_names: Tuple[str, ...] = ()
    buckets: Tuple[float, ...] = ()


class Storage(Protocol):
    """Protocol for metric sample storages."""

    def update_counter(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        ...

    def update_gauge(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        """Add `amount` (negative to decrement) to a gauge series."""
        ...

    def update_histogram(self, spec: MetricSpec, label_values: Sequence[str], value: float) -> None:
        ...

    def collect(self) -> List[Metric]:
        """Return every stored metric as prometheus_client metric families."""
        ...

    def wipe(self) -> None:
        ...


class InMemoryStorage:
    """
    Volatile storage: samples live in the current process only.

    Used when the Redis instance backing the durable storage is unreachable.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._registry = CollectorRegistry(auto_describe=True)
        self._metrics: Dict[str, Union[Counter, Gauge, Histogram]] = {}

    def _metric(self, spec: MetricSpec):
        with self._lock:
            metric = self._metrics.get(spec.name)
            if metric is None:
                metric = self._create(spec)
                self._metrics[spec.name] = metric
            return metric

    def _create(self, spec: MetricSpec):
        if spec.kind is MetricKind.COUNTER:
            return Counter(spec.name, spec.help_text, spec.label_names, registry=self._registry)
        if spec.kind is MetricKind.GAUGE:
            return Gauge(spec.name, spec.help_text, spec.label_names, registry=self._registry)
        return Histogram(
            spec.name,
            spec.help_text,
            spec.label_names,
            buckets=spec.buckets or Histogram.DEFAULT_BUCKETS,
            registry=self._registry,
        )

    def _series(self, spec: MetricSpec, label_values: Sequence[str]):
        metric = self._metric(spec)
        return metric.labels(*label_values) if spec.label_names else metric

    def update_counter(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        self._series(spec, label_values).inc(amount)

    def update_gauge(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        self._series(spec, label_values).inc(amount)

    def update_histogram(self, spec: MetricSpec, label_values: Sequence[str], value: float) -> None:
        self._series(spec, label_values).observe(value)

    def collect(self) -> List[Metric]:
        with self._lock:
            registry = self._registry
        return list(registry.collect())

    def wipe(self) -> None:
        with self._lock:
            self._registry = CollectorRegistry(auto_describe=True)
            self._metrics = {}


def _decode(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisStorage:
    """
    Durable storage: samples are kept in Redis hashes.

    Layout (with the default prefix):
      PROMETHEUS_metrics              name -> JSON {kind, help, label_names, buckets}
      PROMETHEUS_counter:<name>       JSON label values -> value
      PROMETHEUS_gauge:<name>         JSON label values -> value
      PROMETHEUS_histogram:<name>     JSON [label values, bucket bound | "sum"] -> value

    Histogram buckets are stored non-cumulative and accumulated on collect.
    Redis transport failures surface as redis.exceptions.ConnectionError or
    TimeoutError.
    """

    def __init__(self, client, prefix: str = DEFAULT_PREFIX):
        self._redis = client
        self._prefix = prefix
        self._declared: set = set()
        self._lock = threading.Lock()

    @classmethod
    def from_existing_connection(cls, client, prefix: str = DEFAULT_PREFIX) -> "RedisStorage":
        """Build a storage on top of an already connected redis client."""
        return cls(client, prefix=prefix)

    @property
    def _meta_key(self) -> str:
        return f"{self._prefix}metrics"

    def _key(self, kind: MetricKind, name: str) -> str:
        return f"{self._prefix}{kind.value}:{name}"

    def _declare(self, spec: MetricSpec) -> None:
        with self._lock:
            if spec.name in self._declared:
                return
        meta = {
            "kind": spec.kind.value,
            "help": spec.help_text,
            "label_names": list(spec.label_names),
            "buckets": [floatToGoString(bound) for bound in spec.buckets],
        }
        self._redis.hset(self._meta_key, spec.name, json.dumps(meta))
        with self._lock:
            self._declared.add(spec.name)

    def update_counter(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        self._declare(spec)
        self._redis.hincrbyfloat(self._key(spec.kind, spec.name), json.dumps(list(label_values)), amount)

    def update_gauge(self, spec: MetricSpec, label_values: Sequence[str], amount: float) -> None:
        self._declare(spec)
        self._redis.hincrbyfloat(self._key(spec.kind, spec.name), json.dumps(list(label_values)), amount)

    def update_histogram(self, spec: MetricSpec, label_values: Sequence[str], value: float) -> None:
        self._declare(spec)
        bound = next((bound for bound in spec.buckets if value <= bound), float("inf"))
        key = self._key(spec.kind, spec.name)
        labels = list(label_values)

        pipe = self._redis.pipeline()
        pipe.hincrbyfloat(key, json.dumps([labels, "sum"]), value)
        pipe.hincrby(key, json.dumps([labels, floatToGoString(bound)]), 1)
        pipe.execute()

    def collect(self) -> List[Metric]:
        families: List[Metric] = []
        declared = self._redis.hgetall(self._meta_key)

        for raw_name in sorted(declared, key=_decode):
            name = _decode(raw_name)
            meta = json.loads(_decode(declared[raw_name]))
            kind = MetricKind(meta["kind"])
            samples = {
                _decode(field): float(_decode(value))
                for field, value in self._redis.hgetall(self._key(kind, name)).items()
            }

            if kind is MetricKind.HISTOGRAM:
                families.append(self._histogram_family(name, meta, samples))
                continue

            family_class = CounterMetricFamily if kind is MetricKind.COUNTER else GaugeMetricFamily
            family = family_class(name, meta["help"], labels=meta["label_names"])
            for field, value in sorted(samples.items()):
                family.add_metric(json.loads(field), value)
            families.append(family)

        return families

    @staticmethod
    def _histogram_family(name: str, meta: dict, samples: Dict[str, float]) -> HistogramMetricFamily:
        series: Dict[Tuple[str, ...], Dict[str, float]] = {}
        for field, value in samples.items():
            labels, bucket = json.loads(field)
            series.setdefault(tuple(labels), {})[bucket] = value

        family = HistogramMetricFamily(name, meta["help"], labels=meta["label_names"])
        for labels, values in sorted(series.items()):
            cumulative = 0.0
            buckets = []
            for bound in meta["buckets"]:
                cumulative += values.get(bound, 0.0)
                buckets.append((bound, cumulative))
            family.add_metric(list(labels), buckets, sum_value=values.get("sum", 0.0))
        return family

    def wipe(self) -> None:
        declared = self._redis.hgetall(self._meta_key)
        keys = [
            self._key(MetricKind(json.loads(_decode(raw_meta))["kind"]), _decode(raw_name))
            for raw_name, raw_meta in declared.items()
        ]
        self._redis.delete(self._meta_key, *keys)
        with self._lock:
            self._declared = set()
