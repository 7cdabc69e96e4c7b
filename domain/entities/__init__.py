from .metric_event import MetricEvent, MetricKind
from .failed_resource import FailedResource

__all__ = ["MetricEvent", "MetricKind", "FailedResource"]
