from typing_extensions import Protocol
from typing import Any


class BoundLogger(Protocol):
    """
    Protocol for a logger carrying bound context (component, host, ...).

    Events are snake_case names; everything else goes in keyword fields.
    """

    def debug(self, event: str, **kwargs: Any) -> None:
        """
        Log a diagnostic event, e.g. one metric write.

        Args:
            event: Event name
            **kwargs: Context fields
        """
        ...

    def info(self, event: str, **kwargs: Any) -> None:
        ...

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log a degraded-but-running condition (e.g. metrics kept in memory)."""
        ...

    def error(self, event: str, exc_info: bool = False, **kwargs: Any) -> None:
        ...


class LoggingPort(Protocol):
    """Protocol for creating loggers bound to a context."""

    def bind(self, **kwargs: Any) -> BoundLogger:
        """
        Create a logger whose records all carry the given fields.

        Args:
            **kwargs: Context fields, e.g. component="metrics"
        """
        ...
