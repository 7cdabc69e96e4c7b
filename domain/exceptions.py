class MetricsError(Exception):
    """Base class for metric usage errors."""


class MetricTypeConflictError(MetricsError):
    """A metric name is already registered with a different type."""


class LabelCardinalityError(MetricsError, ValueError):
    """The number of label values does not match the metric's label names."""
