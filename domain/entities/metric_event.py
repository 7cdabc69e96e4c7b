from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from domain.interfaces import LabelValue


class MetricKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class MetricEvent:
    name: str
    kind: MetricKind
    value: float
    labels: Tuple[LabelValue, ...] = field(default_factory=tuple)

    def log_fields(self) -> Dict[str, Any]:
        """Structured record for the debug log: type, metric, amount|value, labels."""
        # Counters and gauges move by an amount, histograms receive a value.
        value_key = "value" if self.kind is MetricKind.HISTOGRAM else "amount"
        return {
            "type": self.kind.value,
            "metric": self.name,
            value_key: self.value,
            "labels": list(self.labels),
        }
