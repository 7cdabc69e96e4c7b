"""
Prepared statements over DB-API cursors, plain and measured.
"""
from typing import Any, Dict, Iterator, List, Optional, Union

from domain.interfaces import Collector
from infrastructure.probes.timing import measure

Params = Union[List[Any], Dict[str, Any]]


class Statement:
    """
    A query bound to a DB-API cursor, executed once its values are bound.

    Positional parameters are bound with integer keys starting at 1, named
    parameters with their name.
    """

    def __init__(self, cursor: Any, sql: str):
        self._cursor = cursor
        self.sql = sql
        self._bound: Dict[Union[int, str], Any] = {}

    def bind_value(self, param: Union[int, str], value: Any) -> None:
        self._bound[param] = value

    def _bound_params(self) -> Optional[Params]:
        if not self._bound:
            return None
        if all(isinstance(key, int) for key in self._bound):
            return [self._bound[key] for key in sorted(self._bound)]
        return {str(key): value for key, value in self._bound.items()}

    def execute(self, params: Optional[Params] = None) -> "Statement":
        params = params if params is not None else self._bound_params()
        if params is None:
            self._cursor.execute(self.sql)
        else:
            self._cursor.execute(self.sql, params)
        return self

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def description(self):
        return self._cursor.description

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchmany(self, size: Optional[int] = None):
        if size is None:
            return self._cursor.fetchmany()
        return self._cursor.fetchmany(size)

    def fetchall(self):
        return self._cursor.fetchall()

    def close(self) -> None:
        self._cursor.close()

    def __iter__(self) -> Iterator[Any]:
        return iter(self._cursor)


class MeasurableStatement:
    """
    A decorator wrapping a Statement and intercepting `execute` to measure
    the following metrics:

      - mysql_query_error
      - mysql_query_execution_time

    Binding, fetching and metadata calls are forwarded unchanged.
    """

    def __init__(self, decorated_statement: Any, metrics: Collector, operation: str, host: str):
        self._decorated_statement = decorated_statement
        self._metrics = metrics
        self._operation = operation
        self._host = host

    @property
    def operation(self) -> str:
        return self._operation

    def _record_execution(self, elapsed: float) -> None:
        self._metrics.observe_histogram(
            "mysql_query_execution_time", elapsed, [self._operation, self._host, True]
        )

    def execute(self, params: Optional[Params] = None) -> Any:
        with measure(self._record_execution):
            try:
                result = self._decorated_statement.execute(params)
            except Exception:
                self._metrics.increment_counter("mysql_query_error", [self._host])
                raise

        # Keep chained calls (statement.execute().fetchall()) on the decorator
        return self if result is self._decorated_statement else result

    def __iter__(self) -> Iterator[Any]:
        return iter(self._decorated_statement)

    def __getattr__(self, name: str) -> Any:
        statement = self.__dict__.get("_decorated_statement")
        if statement is None:
            raise AttributeError(name)
        return getattr(statement, name)
