"""
Decorator around a DB-API 2.0 driver module measuring connection dials.
"""
from typing import Any

from domain.interfaces import Collector
from infrastructure.probes.timing import measure


class MeasurableDriver:
    """
    Wraps a DB-API driver (e.g. the `sqlite3` or `pymysql` module) and
    measures the following metric:

      - mysql_connection_dial

    Every other attribute (paramstyle, exception classes, optional
    extensions) is read from the wrapped driver, so a capability the driver
    lacks is missing here too.
    """

    def __init__(self, decorated_driver: Any, metrics: Collector, host: str):
        self._decorated_driver = decorated_driver
        self._metrics = metrics
        self._host = host

    @property
    def decorated_driver(self) -> Any:
        return self._decorated_driver

    def connect(self, *args: Any, **kwargs: Any) -> Any:
        with measure(lambda elapsed: self._metrics.observe_histogram(
            "mysql_connection_dial", elapsed, [self._host]
        )):
            return self._decorated_driver.connect(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        driver = self.__dict__.get("_decorated_driver")
        if driver is None:
            raise AttributeError(name)
        return getattr(driver, name)
