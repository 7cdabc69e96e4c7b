"""
Tests for the measurable Redis client.

Tests verify:
- Commands are counted and timed with their protocol name
- Reply sizes are observed; unserializable replies count as 0
- Failed commands are counted and re-raised
- Unmeasured methods and attributes pass through untouched
- Connection dials are timed with their outcome
"""
import pytest
from unittest.mock import ANY, call
from redis.exceptions import ConnectionError as RedisConnectionError

from domain.interfaces import Collector
from infrastructure.probes.cache import (
    MeasurableRedisClient,
    command_from_args,
    command_name,
    estimate_size,
)


@pytest.fixture
def metrics(mocker):
    return mocker.Mock(spec=Collector)


@pytest.fixture
def redis_client(mocker):
    client = mocker.Mock()
    client.connection_pool.connection_kwargs = {"host": "cache-1", "port": 6379}
    return client


@pytest.fixture
def client(redis_client, metrics):
    return MeasurableRedisClient(redis_client, metrics)


class TestCommandNames:
    """Tests for command name resolution."""

    @pytest.mark.parametrize("method, expected", [
        ("get", "GET"),
        ("hgetall", "HGETALL"),
        ("delete", "DEL"),
        ("config_get", "CONFIG"),
        ("xinfo_stream", "XINFO"),
        ("set", "SET"),
    ])
    def test_command_name(self, method, expected):
        assert command_name(method) == expected

    def test_command_from_args(self):
        assert command_from_args(("set", "k", "v")) == "SET"
        assert command_from_args((b"CLIENT LIST",)) == "CLIENT"
        assert command_from_args(()) == "UNKNOWN"


class TestEstimateSize:
    """Tests for reply size estimation."""

    def test_json_length(self):
        assert estimate_size("value") == 7
        assert estimate_size(b"value") == 7
        assert estimate_size(None) == 4
        assert estimate_size({"a": 1}) == 8

    def test_unserializable_reply_is_zero(self):
        assert estimate_size(b"\xff\xfe") == 0
        assert estimate_size(object()) == 0


class TestMeasuredCommands:
    """Tests for command metrics."""

    def test_command_is_counted_timed_and_sized(self, client, redis_client, metrics):
        redis_client.get.return_value = b"value"

        assert client.get("session:1") == b"value"

        redis_client.get.assert_called_once_with("session:1")
        assert metrics.mock_calls == [
            call.increment_counter("redis_operation_exec_count", ["cache-1", "GET"]),
            call.observe_histogram("redis_operation_exec_time", ANY, ["cache-1", "GET"]),
            call.observe_histogram("redis_value_size", 7, ["cache-1"]),
        ]

    def test_method_alias_uses_protocol_name(self, client, redis_client, metrics):
        redis_client.delete.return_value = 1

        client.delete("a", "b")

        metrics.increment_counter.assert_called_once_with("redis_operation_exec_count", ["cache-1", "DEL"])

    def test_execute_command_is_measured(self, client, redis_client, metrics):
        redis_client.execute_command.return_value = b"OK"

        client.execute_command("SET", "k", "v")

        redis_client.execute_command.assert_called_once_with("SET", "k", "v")
        metrics.increment_counter.assert_called_once_with("redis_operation_exec_count", ["cache-1", "SET"])

    def test_failed_command_is_counted_and_raised(self, client, redis_client, metrics):
        redis_client.set.side_effect = RedisConnectionError("reset by peer")

        with pytest.raises(RedisConnectionError):
            client.set("k", "v")

        metrics.increment_counter.assert_any_call("redis_operation_error", ["cache-1", "SET"])
        metrics.increment_counter.assert_any_call("redis_operation_exec_count", ["cache-1", "SET"])
        metrics.observe_histogram.assert_called_once_with(
            "redis_operation_exec_time", ANY, ["cache-1", "SET"]
        )

    def test_explicit_host_label(self, redis_client, metrics):
        client = MeasurableRedisClient(redis_client, metrics, host="primary")
        redis_client.incr.return_value = 2

        client.incr("hits")

        metrics.increment_counter.assert_called_once_with("redis_operation_exec_count", ["primary", "INCR"])


class TestPassThrough:
    """Tests for calls that are not measured."""

    @pytest.mark.parametrize("method", ["ping", "pipeline", "get_encoder", "scan_iter", "lock"])
    def test_unmeasured_methods(self, client, redis_client, metrics, method):
        getattr(client, method)()

        getattr(redis_client, method).assert_called_once_with()
        assert metrics.mock_calls == []

    def test_plain_attributes(self, client, redis_client):
        redis_client.response_callbacks = {"GET": str}

        assert client.response_callbacks == {"GET": str}
        assert client.decorated_client is redis_client


class TestConnect:
    """Tests for connection dial metrics."""

    def test_successful_dial(self, client, redis_client, metrics):
        pool = redis_client.connection_pool

        assert client.connect() is True

        pool.get_connection.assert_called_once_with()
        pool.release.assert_called_once_with(pool.get_connection.return_value)
        metrics.observe_histogram.assert_called_once_with("redis_connection_dial", ANY, ["cache-1", True])

    def test_failed_dial(self, client, redis_client, metrics):
        redis_client.connection_pool.get_connection.side_effect = RedisConnectionError("refused")

        with pytest.raises(RedisConnectionError):
            client.connect()

        metrics.observe_histogram.assert_called_once_with("redis_connection_dial", ANY, ["cache-1", False])

    @pytest.mark.parametrize("alias", ["pconnect", "open", "popen"])
    def test_aliases_dial(self, client, metrics, alias):
        assert getattr(client, alias)() is True

        metrics.observe_histogram.assert_called_once_with("redis_connection_dial", ANY, ["cache-1", True])
