"""
Database connection decorated with query and transaction metrics.
"""
from typing import Any, Callable, Dict, Optional

from domain.interfaces import Collector
from infrastructure.probes.db.driver import MeasurableDriver
from infrastructure.probes.db.sql import operation_from_sql
from infrastructure.probes.db.statement import MeasurableStatement, Params, Statement
from infrastructure.probes.timing import measure


class MeasurableConnection:
    """
    A connection over a DB-API driver which decorates its driver and its
    statements to measure the following metrics:

      - mysql_connection_dial (through MeasurableDriver)
      - mysql_query_error
      - mysql_query_execution_time
      - mysql_transaction_exec
      - mysql_transaction_pending

    Without a collector (set_collector never called) every call goes straight
    to the driver connection.
    """

    def __init__(self, driver: Any, params: Optional[Dict[str, Any]] = None, host: Optional[str] = None):
        """
        Initialize the connection. The driver is dialed on first use.

        Args:
            driver: DB-API module (or any object with a `connect(**params)` function)
            params: Keyword arguments passed to `driver.connect`
            host: Host label; defaults to params["host"]
        """
        self._driver = driver
        self._raw_driver = driver
        self._params = dict(params or {})
        self._host = host if host is not None else str(self._params.get("host", ""))
        self._metrics: Optional[Collector] = None
        self._connection: Any = None

    def set_collector(self, metrics: Collector) -> None:
        self._metrics = metrics
        self._driver = MeasurableDriver(self._raw_driver, metrics, self._host)

    @property
    def host(self) -> str:
        return self._host

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    def connect(self) -> Any:
        """Dial the driver if needed and return the DB-API connection."""
        if self._connection is None:
            self._connection = self._driver.connect(**self._params)
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def cursor(self) -> Any:
        return self.connect().cursor()

    def prepare(self, sql: str):
        statement = Statement(self.cursor(), sql)

        if self._metrics is not None:
            return MeasurableStatement(statement, self._metrics, operation_from_sql(sql), self._host)

        return statement

    def _measure_query_execution(self, sql: str, runner: Callable[[], Any]) -> Any:
        if self._metrics is None:
            return runner()

        metrics = self._metrics
        labels = [operation_from_sql(sql), self._host, False]

        with measure(lambda elapsed: metrics.observe_histogram("mysql_query_execution_time", elapsed, labels)):
            try:
                return runner()
            except Exception:
                metrics.increment_counter("mysql_query_error", [self._host])
                raise

    def _execute(self, sql: str, params: Optional[Params]) -> Any:
        cursor = self.cursor()
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        return cursor

    def execute_query(self, sql: str, params: Optional[Params] = None) -> Any:
        """Run a query and return the cursor holding its result."""
        return self._measure_query_execution(sql, lambda: self._execute(sql, params))

    def query(self, sql: str) -> Any:
        """Run a query without parameters and return the cursor holding its result."""
        return self._measure_query_execution(sql, lambda: self._execute(sql, None))

    def execute_statement(self, sql: str, params: Optional[Params] = None) -> int:
        """Run a data-modifying statement and return the number of affected rows."""
        return self._measure_query_execution(sql, lambda: self._execute(sql, params).rowcount)

    def begin_transaction(self) -> None:
        if self._metrics is not None:
            self._metrics.increment_gauge("mysql_transaction_pending", [self._host])

        # DB-API transactions start implicitly; some drivers also expose begin()
        begin = getattr(self.connect(), "begin", None)
        if callable(begin):
            begin()

    def commit(self) -> None:
        if self._metrics is None:
            self.connect().commit()
            return

        self._metrics.decrement_gauge("mysql_transaction_pending", [self._host])
        try:
            self.connect().commit()
        except Exception:
            self._metrics.increment_counter("mysql_transaction_exec", [self._host, "fail"])
            raise
        self._metrics.increment_counter("mysql_transaction_exec", [self._host, "success"])

    def rollback(self) -> None:
        if self._metrics is not None:
            self._metrics.decrement_gauge("mysql_transaction_pending", [self._host])
            self._metrics.increment_counter("mysql_transaction_exec", [self._host, "rollback"])

        self.connect().rollback()

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "MeasurableConnection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __getattr__(self, name: str) -> Any:
        # Anything not instrumented goes to the live driver connection
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.connect(), name)
