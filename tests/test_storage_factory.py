"""
Tests for failure-tolerant Redis construction and storage selection.

Tests verify:
- RedisClientFactory dials (PING) at construction with the configured options
- FailableRedisFactory turns a failed construction into a FailedResource
- StorageAdapterFactory picks the durable or the volatile storage
- A service whose Redis is down still records metrics in memory
"""
import pytest
from unittest.mock import ANY
from redis.backoff import NoBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.retry import Retry
from structlog.testing import capture_logs

from domain.config import RedisConfig
from domain.entities import FailedResource
from infrastructure.cache import FailableRedisFactory, LazyResource, RedisClientFactory
from infrastructure.metrics.metrics_adapter import PrometheusCollector
from infrastructure.metrics.registry import MetricRegistry
from infrastructure.metrics.resilient_collector import ResilientCollector
from infrastructure.metrics.storage import InMemoryStorage, RedisStorage
from infrastructure.metrics.storage_factory import StorageAdapterFactory


@pytest.fixture
def redis_config():
    return RedisConfig(
        host="cache.internal",
        port=6380,
        db=2,
        password="secret",
        connect_timeout=0.2,
        socket_timeout=0.3,
        storage_prefix="PROMETHEUS_",
    )


class TestRedisClientFactory:
    """Tests for client construction."""

    def test_client_is_built_and_pinged(self, mocker, redis_config):
        redis_class = mocker.patch("infrastructure.cache.factory.redis.Redis")

        client = RedisClientFactory(redis_config).create()

        redis_class.assert_called_once_with(
            host="cache.internal",
            port=6380,
            db=2,
            password="secret",
            socket_connect_timeout=0.2,
            socket_timeout=0.3,
            retry=ANY,
            retry_on_timeout=False,
        )
        assert client is redis_class.return_value
        client.ping.assert_called_once()

    def test_client_does_not_retry(self, mocker, redis_config):
        """Test that a failed command is not retried with backoff sleeps."""
        redis_class = mocker.patch("infrastructure.cache.factory.redis.Redis")

        RedisClientFactory(redis_config).create()

        retry = redis_class.call_args.kwargs["retry"]
        assert isinstance(retry, Retry)
        assert isinstance(retry._backoff, NoBackoff)
        assert retry._retries == 0

    def test_arguments_override_config(self, mocker, redis_config):
        redis_class = mocker.patch("infrastructure.cache.factory.redis.Redis")

        RedisClientFactory(redis_config).create("other", 6379, 0, socket_timeout=5)

        _, kwargs = redis_class.call_args
        assert kwargs["host"] == "other"
        assert kwargs["port"] == 6379
        assert kwargs["db"] == 0
        assert kwargs["socket_timeout"] == 5

    def test_dial_failure_raises(self, mocker, redis_config):
        redis_class = mocker.patch("infrastructure.cache.factory.redis.Redis")
        redis_class.return_value.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(RedisConnectionError):
            RedisClientFactory(redis_config).create()


class TestFailableRedisFactory:
    """Tests for the failure-tolerant factory decorator."""

    def test_success_returns_client(self, mocker):
        decorated = mocker.Mock(spec=RedisClientFactory)

        client = FailableRedisFactory(decorated).create("cache", 6379)

        decorated.create.assert_called_once_with("cache", 6379)
        assert client is decorated.create.return_value

    def test_failure_returns_failed_resource(self, mocker):
        decorated = mocker.Mock(spec=RedisClientFactory)
        decorated.create.side_effect = RedisConnectionError("Connection refused")

        with capture_logs() as logs:
            resource = FailableRedisFactory(decorated).create()

        assert resource == FailedResource(name="redis", reason="Connection refused")
        assert logs[0]["event"] == "redis_connection_failed"
        assert logs[0]["log_level"] == "warning"

    def test_non_redis_errors_propagate(self, mocker):
        decorated = mocker.Mock(spec=RedisClientFactory)
        decorated.create.side_effect = TypeError("unexpected keyword")

        with pytest.raises(TypeError):
            FailableRedisFactory(decorated).create(bogus=True)


class TestLazyResource:
    """Tests for the lazy proxy."""

    def test_factory_runs_once(self, mocker):
        factory = mocker.Mock(return_value="client")
        resource = LazyResource(factory)

        assert not resource.is_initialized
        factory.assert_not_called()

        assert resource.get() == "client"
        assert resource.get() == "client"
        assert resource.is_initialized
        factory.assert_called_once()


class TestStorageAdapterFactory:
    """Tests for storage selection."""

    def test_live_client_gets_redis_storage(self, mocker):
        storage = StorageAdapterFactory().create(mocker.Mock())

        assert isinstance(storage, RedisStorage)

    def test_failed_resource_gets_memory_storage(self):
        with capture_logs() as logs:
            storage = StorageAdapterFactory().create(FailedResource(name="redis", reason="refused"))

        assert isinstance(storage, InMemoryStorage)
        assert logs[0]["event"] == "metrics_storage_degraded"
        assert logs[0]["log_level"] == "warning"

    def test_lazy_resource_is_initialized_first(self, mocker):
        factory = mocker.Mock(return_value=FailedResource(name="redis"))
        resource = LazyResource(factory)

        storage = StorageAdapterFactory().create(resource)

        assert isinstance(storage, InMemoryStorage)
        assert resource.is_initialized
        factory.assert_called_once()

    def test_storage_is_memoized_per_resource(self, mocker):
        factory = StorageAdapterFactory()
        client = mocker.Mock()

        assert factory.create(client) is factory.create(client)
        assert factory.create(client) is not factory.create(mocker.Mock())


class TestDegradedMode:
    """End-to-end scenario: Redis unreachable at boot."""

    def test_metrics_are_recorded_in_memory(self, mocker, redis_config):
        redis_class = mocker.patch("infrastructure.cache.factory.redis.Redis")
        redis_class.return_value.ping.side_effect = RedisConnectionError("Connection refused")

        resource = LazyResource(lambda: FailableRedisFactory(RedisClientFactory(redis_config)).create())
        storage = StorageAdapterFactory().create(resource)
        registry = MetricRegistry(storage)
        collector = ResilientCollector(PrometheusCollector(registry))

        collector.increment_counter("redis_operation_exec_count", ["cache.internal", "GET"])

        assert isinstance(storage, InMemoryStorage)
        samples = {
            sample.name: sample.value
            for family in registry.collect()
            for sample in family.samples
        }
        assert samples["redis_operation_exec_count_total"] == 1.0
