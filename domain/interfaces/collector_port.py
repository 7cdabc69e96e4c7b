from typing_extensions import Protocol
from typing import Optional, Sequence, Union

LabelValue = Optional[Union[str, int, float, bool]]
Labels = Sequence[LabelValue]


class Collector(Protocol):
    """
    Protocol for emitting metric events.

    Label values are positional: their order must match the label names of
    the metric definition and never change for a given metric name.
    """

    def increment_counter(self, name: str, labels: Labels = ()) -> None:
        """Increment a counter by one."""
        ...

    def increment_counter_by(self, name: str, count: int, labels: Labels = ()) -> None:
        """
        Increment a counter by an arbitrary amount.

        Args:
            name: Metric name (e.g. "mysql_query_error")
            count: Non-negative amount to add
            labels: Ordered label values
        """
        ...

    def increment_gauge(self, name: str, labels: Labels = ()) -> None:
        """Increment a gauge by one."""
        ...

    def increment_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        """Increment a gauge by an arbitrary amount."""
        ...

    def decrement_gauge(self, name: str, labels: Labels = ()) -> None:
        """Decrement a gauge by one."""
        ...

    def decrement_gauge_by(self, name: str, value: float, labels: Labels = ()) -> None:
        """Decrement a gauge by an arbitrary amount."""
        ...

    def observe_histogram(self, name: str, value: float, labels: Labels = ()) -> None:
        """
        Record an observation in a histogram.

        Args:
            name: Metric name (e.g. "redis_operation_exec_time")
            value: Observed value (seconds, bytes, ...)
            labels: Ordered label values
        """
        ...
