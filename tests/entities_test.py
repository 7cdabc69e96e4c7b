"""
Tests for domain entities.
"""
from domain.entities import FailedResource, MetricEvent, MetricKind


class TestMetricEvent:
    """Tests for the debug log record of a metric event."""

    def test_counter_fields(self):
        event = MetricEvent(name="mysql_query_error", kind=MetricKind.COUNTER, value=1, labels=("db-1",))

        assert event.log_fields() == {
            "type": "counter",
            "metric": "mysql_query_error",
            "amount": 1,
            "labels": ["db-1"],
        }

    def test_histogram_fields_use_value(self):
        event = MetricEvent(name="redis_value_size", kind=MetricKind.HISTOGRAM, value=12.0)

        assert event.log_fields() == {
            "type": "histogram",
            "metric": "redis_value_size",
            "value": 12.0,
            "labels": [],
        }


class TestFailedResource:
    """Tests for the failed construction sentinel."""

    def test_equality(self):
        assert FailedResource(name="redis", reason="refused") == FailedResource(name="redis", reason="refused")
        assert FailedResource(name="redis").reason == ""
