"""
Redis client decorated with command metrics.
"""
import functools
import json
import time
from typing import Any, Callable, Optional

from domain.interfaces import Collector
from infrastructure.probes.cache.commands import UNMEASURED_COMMANDS, command_from_args, command_name
from infrastructure.probes.timing import measure


def _encode_bytes(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"{type(value).__name__} is not serializable")


def estimate_size(value: Any) -> int:
    """
    Rough size of a reply: the length of its JSON encoding.

    Returns 0 when the reply cannot be encoded (binary payloads, custom types).
    """
    try:
        return len(json.dumps(value, default=_encode_bytes))
    except (TypeError, ValueError):
        return 0


class MeasurableRedisClient:
    """
    A decorator wrapping a redis client and intercepting command calls to
    measure the following metrics:

      - redis_connection_dial
      - redis_operation_error
      - redis_operation_exec_count
      - redis_operation_exec_time
      - redis_value_size

    Commands are dispatched generically: any client method outside
    UNMEASURED_COMMANDS is timed and counted under its protocol command name.
    """

    def __init__(self, decorated_client: Any, metrics: Collector, host: Optional[str] = None):
        """
        Initialize the decorator.

        Args:
            decorated_client: A redis.Redis instance
            metrics: Collector receiving the metrics
            host: Host label; defaults to the host of the client's connection pool
        """
        self._decorated_client = decorated_client
        self._metrics = metrics
        self._host = host if host is not None else self._pool_host(decorated_client)

    @staticmethod
    def _pool_host(client: Any) -> str:
        pool = getattr(client, "connection_pool", None)
        kwargs = getattr(pool, "connection_kwargs", None)
        if isinstance(kwargs, dict):
            return str(kwargs.get("host", kwargs.get("path", "")))
        return ""

    @property
    def host(self) -> str:
        return self._host

    @property
    def decorated_client(self) -> Any:
        return self._decorated_client

    def _execute_and_measure(self, command: str, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        labels = [self._host, command]

        def record(elapsed: float) -> None:
            self._metrics.increment_counter("redis_operation_exec_count", labels)
            self._metrics.observe_histogram("redis_operation_exec_time", elapsed, labels)

        with measure(record):
            try:
                result = method(*args, **kwargs)
            except Exception:
                self._metrics.increment_counter("redis_operation_error", labels)
                raise

        self._metrics.observe_histogram("redis_value_size", estimate_size(result), [self._host])
        return result

    def execute_command(self, *args: Any, **options: Any) -> Any:
        return self._execute_and_measure(
            command_from_args(args), self._decorated_client.execute_command, *args, **options
        )

    def connect(self) -> bool:
        """
        Dial a connection of the client's pool and give it back to the pool.

        Raises:
            redis.exceptions.ConnectionError: If the server cannot be reached
        """
        pool = self._decorated_client.connection_pool
        success = False
        start = time.perf_counter()
        try:
            connection = pool.get_connection()
            success = True
        finally:
            elapsed = time.perf_counter() - start
            self._metrics.observe_histogram("redis_connection_dial", elapsed, [self._host, success])

        pool.release(connection)
        return success

    # Pool connections stay open between commands, so a persistent dial is a plain dial
    pconnect = connect
    open = connect
    popen = connect

    def __getattr__(self, name: str) -> Any:
        client = self.__dict__.get("_decorated_client")
        if client is None:
            raise AttributeError(name)

        attribute = getattr(client, name)
        if name.startswith("_") or name in UNMEASURED_COMMANDS or not callable(attribute):
            return attribute

        command = command_name(name)

        @functools.wraps(attribute)
        def measured(*args: Any, **kwargs: Any) -> Any:
            return self._execute_and_measure(command, attribute, *args, **kwargs)

        return measured
