"""
structlog implementation of the LoggingPort protocol.

The collector decorators receive a BoundLogger instead of importing the
module-level logger, so a test can hand them a mock and the wiring can bind
the component name once.
"""
from typing import Any, Optional

from domain.interfaces import BoundLogger, LoggingPort
from infrastructure.logging.structlog_logs import logger as structlog_logger


class StructlogBoundLogger:
    """BoundLogger over a structlog bound logger."""

    def __init__(self, bound_logger):
        self._logger = bound_logger

    def debug(self, event: str, **kwargs: Any) -> None:
        self._logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._logger.warning(event, **kwargs)

    def error(self, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.error(event, exc_info=exc_info, **kwargs)


class LoggingAdapter:
    """
    Adapter that implements LoggingPort.

    Args:
        component: Optional component name bound to every logger created
    """

    def __init__(self, component: Optional[str] = None):
        self._context = {"component": component} if component else {}

    def bind(self, **kwargs: Any) -> BoundLogger:
        """
        Create a bound logger with the adapter context plus `kwargs`.

        Returns:
            A BoundLogger writing structured JSON records
        """
        return StructlogBoundLogger(structlog_logger.bind(**self._context, **kwargs))


def metrics_logger(**kwargs: Any) -> BoundLogger:
    """Logger for the metrics stack (component="metrics")."""
    adapter: LoggingPort = LoggingAdapter(component="metrics")
    return adapter.bind(**kwargs)
