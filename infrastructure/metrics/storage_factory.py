"""
Selection of the metrics storage.

Returns a RedisStorage bound to a live Redis client, or an InMemoryStorage
when the client could not be created (FailedResource).
"""
import threading
from typing import Any, Dict, Tuple

from domain.entities import FailedResource
from infrastructure.cache.factory import LazyResource
from infrastructure.logging.structlog_logs import logger
from infrastructure.metrics.storage import DEFAULT_PREFIX, InMemoryStorage, RedisStorage, Storage


class StorageAdapterFactory:
    """
    Builds the storage for a Redis resource once per resource.

    Lazy resources are initialized first so the choice is made on the real
    client, not on the proxy.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self._prefix = prefix
        # id(resource) -> (resource, storage); the resource is kept alive so its id stays unique
        self._storages: Dict[int, Tuple[Any, Storage]] = {}
        self._lock = threading.Lock()

    def create(self, resource: Any) -> Storage:
        with self._lock:
            cached = self._storages.get(id(resource))
            if cached is not None:
                return cached[1]

            storage = self._select(resource)
            self._storages[id(resource)] = (resource, storage)
            return storage

    def _select(self, resource: Any) -> Storage:
        if isinstance(resource, LazyResource):
            resource = resource.get()

        if isinstance(resource, FailedResource):
            logger.warning(
                "metrics_storage_degraded",
                step="storage_factory",
                resource=resource.name,
                reason=resource.reason,
                storage="memory",
            )
            return InMemoryStorage()

        return RedisStorage.from_existing_connection(resource, prefix=self._prefix)
