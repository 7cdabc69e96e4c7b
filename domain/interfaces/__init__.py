from .collector_port import Collector, LabelValue, Labels
from .registry_port import MetricRegistryPort, CounterPort, GaugePort, HistogramPort
from .logging_port import LoggingPort, BoundLogger

__all__ = [
    "Collector",
    "LabelValue",
    "Labels",
    "MetricRegistryPort",
    "CounterPort",
    "GaugePort",
    "HistogramPort",
    "LoggingPort",
    "BoundLogger",
]
