from typing import Any, Dict, Optional

from domain.interfaces import Collector
from infrastructure.probes.db.connection import MeasurableConnection


class ConnectionFactory:
    """Creates connections over a DB-API driver."""

    def __init__(self, driver: Any):
        self._driver = driver

    def create_connection(self, params: Dict[str, Any], host: Optional[str] = None) -> MeasurableConnection:
        return MeasurableConnection(self._driver, params, host=host)


class MeasurableConnectionFactory:
    """
    A decorator wrapping a connection factory and setting a metric collector
    on the connections it creates.
    """

    def __init__(self, decorated_factory: ConnectionFactory, metrics: Collector):
        self._decorated_factory = decorated_factory
        self._metrics = metrics

    def create_connection(self, params: Dict[str, Any], host: Optional[str] = None) -> Any:
        connection = self._decorated_factory.create_connection(params, host=host)

        if isinstance(connection, MeasurableConnection):
            connection.set_collector(self._metrics)

        return connection
