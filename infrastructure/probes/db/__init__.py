from .connection import MeasurableConnection
from .connection_factory import ConnectionFactory, MeasurableConnectionFactory
from .driver import MeasurableDriver
from .sql import operation_from_sql
from .statement import MeasurableStatement, Statement

__all__ = [
    "MeasurableConnection",
    "ConnectionFactory",
    "MeasurableConnectionFactory",
    "MeasurableDriver",
    "operation_from_sql",
    "MeasurableStatement",
    "Statement",
]
