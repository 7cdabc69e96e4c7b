"""
Redis client construction.

RedisClientFactory dials eagerly so an unreachable peer is detected at boot.
FailableRedisFactory turns that failure into a FailedResource so the service
still starts; the metrics storage selection then falls back to memory.
"""
import threading
from typing import Any, Callable, Optional

import redis
from redis.backoff import NoBackoff
from redis.exceptions import RedisError
from redis.retry import Retry

from domain.config import RedisConfig, get_redis_config
from domain.entities import FailedResource
from infrastructure.logging.structlog_logs import logger


class RedisClientFactory:
    """Creates connected redis clients from the Redis configuration."""

    def __init__(self, config: Optional[RedisConfig] = None):
        self.config = config or get_redis_config()

    def create(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        db: Optional[int] = None,
        **options: Any,
    ) -> redis.Redis:
        """
        Create a client and check the connection with a PING.

        Raises:
            redis.exceptions.RedisError: If the server cannot be reached
        """
        options.setdefault("password", self.config.password)
        options.setdefault("socket_connect_timeout", self.config.connect_timeout)
        options.setdefault("socket_timeout", self.config.socket_timeout)
        # A failed command fails once; metric writes must never sleep in a backoff
        options.setdefault("retry", Retry(NoBackoff(), 0))
        options.setdefault("retry_on_timeout", False)

        client = redis.Redis(
            host=host or self.config.host,
            port=port if port is not None else self.config.port,
            db=db if db is not None else self.config.db,
            **options,
        )
        client.ping()
        return client


class FailableRedisFactory:
    """
    A decorator wrapping a RedisClientFactory and returning a FailedResource
    when the creation fails (e.g. a refused connection).
    """

    def __init__(self, decorated_factory: RedisClientFactory):
        self._decorated_factory = decorated_factory

    def create(self, *args: Any, **kwargs: Any):
        try:
            return self._decorated_factory.create(*args, **kwargs)
        except RedisError as e:
            logger.warning(
                "redis_connection_failed",
                step="redis_factory",
                error=str(e),
            )
            return FailedResource(name="redis", reason=str(e))


class LazyResource:
    """
    Defers the construction of a resource until it is first needed.

    The factory runs at most once; later calls return the same instance,
    including a FailedResource if that is what the factory produced.
    """

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._lock = threading.Lock()
        self._initialized = False
        self._value: Any = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        with self._lock:
            if not self._initialized:
                self._value = self._factory()
                self._initialized = True

    def get(self) -> Any:
        self.initialize()
        return self._value
