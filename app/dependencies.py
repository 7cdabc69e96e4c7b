"""
Composition of the metrics stack.

    LazyResource(FailableRedisFactory(RedisClientFactory))
        -> StorageAdapterFactory -> MetricRegistry
        -> PrometheusCollector -> ResilientCollector [-> LoggingCollector]

The Redis client is only dialed when the storage is first selected, i.e. when
build_metrics_container() runs, not at import.
"""
from dataclasses import dataclass
from typing import Optional

from prometheus_client import CollectorRegistry

from domain.config import MetricsConfig, RedisConfig, get_metrics_config, get_redis_config
from domain.interfaces import Collector
from infrastructure.cache import FailableRedisFactory, LazyResource, RedisClientFactory
from infrastructure.logging.logging_adapter import metrics_logger
from infrastructure.metrics.logging_collector import LoggingCollector
from infrastructure.metrics.metrics_adapter import PrometheusCollector
from infrastructure.metrics.registry import MetricRegistry
from infrastructure.metrics.resilient_collector import ResilientCollector
from infrastructure.metrics.storage_factory import StorageAdapterFactory


@dataclass
class MetricsContainer:
    collector: Collector
    registry: MetricRegistry
    # Registry rendered by the exposition route
    exposition_registry: CollectorRegistry


def build_metrics_container(
    redis_config: Optional[RedisConfig] = None,
    metrics_config: Optional[MetricsConfig] = None,
) -> MetricsContainer:
    redis_config = redis_config or get_redis_config()
    metrics_config = metrics_config or get_metrics_config()

    redis_resource = LazyResource(lambda: FailableRedisFactory(RedisClientFactory(redis_config)).create())
    storage = StorageAdapterFactory(prefix=redis_config.storage_prefix).create(redis_resource)
    registry = MetricRegistry(storage)

    collector: Collector = ResilientCollector(PrometheusCollector(registry))
    if metrics_config.debug_logging:
        collector = LoggingCollector(collector, metrics_logger())

    exposition_registry = CollectorRegistry(auto_describe=False)
    exposition_registry.register(registry)

    return MetricsContainer(
        collector=collector,
        registry=registry,
        exposition_registry=exposition_registry,
    )


# Global container instance (lazy loaded)
_metrics_container = None


def get_metrics_container() -> MetricsContainer:
    """Get the process-wide metrics container."""
    global _metrics_container
    if _metrics_container is None:
        _metrics_container = build_metrics_container()
    return _metrics_container
