"""
Tests for inbound HTTP metrics on ASGI applications.

Tests verify:
- Each request records pending, response time, status code and body size
- Requests to the metrics route, internal routes or no route are skipped
- An exception escaping the application is recorded as a 500
"""
import pytest
from unittest.mock import ANY, call
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from fastapi.testclient import TestClient

from domain.interfaces import Collector
from infrastructure.probes.http import (
    HttpMetricsMiddleware,
    RequestMetricsObserver,
    is_route_block_listed,
)


@pytest.fixture
def metrics(mocker):
    return mocker.Mock(spec=Collector)


@pytest.fixture
def app(metrics):
    app = FastAPI()

    @app.get("/orders/{order_id}")
    async def get_order(order_id: int):
        return PlainTextResponse(f"order {order_id}")

    @app.get("/orders/{order_id}/missing")
    async def missing_order(order_id: int):
        raise HTTPException(status_code=404, detail="Order not found")

    @app.get("/export")
    async def export():
        async def chunks():
            yield b"a,b\n"
            yield b"1,2\n"
        return StreamingResponse(chunks(), media_type="text/csv")

    @app.get("/legacy")
    async def legacy():
        return Response(content=b"ok", headers={"content-length": "not-a-number"})

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.get("/metrics", name="metrics")
    async def exposition():
        return PlainTextResponse("")

    @app.get("/internal/ping", name="_ping")
    async def internal_ping():
        return PlainTextResponse("pong")

    app.add_middleware(HttpMetricsMiddleware, metrics=metrics)
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


class TestBlockList:
    """Tests for route exclusion."""

    @pytest.mark.parametrize("route, blocked", [
        (None, True),
        ("_ping", True),
        ("metrics", True),
        ("get_order", False),
        ("metrics_summary", False),
    ])
    def test_is_route_block_listed(self, route, blocked):
        assert is_route_block_listed(route) is blocked

    def test_custom_block_list(self):
        assert is_route_block_listed("prometheus", metrics_route="prometheus")
        assert is_route_block_listed("internal_health", internal_prefix="internal_")
        assert not is_route_block_listed("_ping", internal_prefix="internal_")


class TestRequestMetricsObserver:
    """Tests for the per-request observer."""

    def test_lifecycle(self, metrics):
        observer = RequestMetricsObserver(metrics, "get_order")

        observer.on_request()
        observer.on_response(201, {"content-length": "10"})

        assert metrics.mock_calls == [
            call.increment_gauge("http_request_pending", ["get_order"]),
            call.decrement_gauge("http_request_pending", ["get_order"]),
            call.observe_histogram("http_request_response_time", ANY, ["get_order"]),
            call.increment_counter("http_request_status_code_count", [201, "get_order"]),
            call.observe_histogram("http_request_body_size", 10.0, ["get_order"]),
        ]

    def test_body_size_without_header(self, metrics):
        observer = RequestMetricsObserver(metrics, "export")

        observer.on_request()
        observer.on_response(200, {}, body_size=8)

        metrics.observe_histogram.assert_any_call("http_request_body_size", 8.0, ["export"])

    def test_unknown_body_size_is_zero(self, metrics):
        observer = RequestMetricsObserver(metrics, "export")

        observer.on_request()
        observer.on_response(204, {})

        metrics.observe_histogram.assert_any_call("http_request_body_size", 0.0, ["export"])

    def test_malformed_content_length_falls_back_to_body_size(self, metrics):
        observer = RequestMetricsObserver(metrics, "legacy")

        observer.on_request()
        observer.on_response(200, {"content-length": "abc"}, body_size=2)

        metrics.observe_histogram.assert_any_call("http_request_body_size", 2.0, ["legacy"])

    @pytest.mark.parametrize("route", [None, "_ping", "metrics"])
    def test_block_listed_routes_emit_nothing(self, metrics, route):
        observer = RequestMetricsObserver(metrics, route)

        observer.on_request()
        observer.on_response(200, {"content-length": "2"})

        assert metrics.mock_calls == []


class TestHttpMetricsMiddleware:
    """Tests for the ASGI middleware."""

    def test_request_is_measured_under_route_name(self, client, metrics):
        response = client.get("/orders/7")

        assert response.status_code == 200
        assert metrics.mock_calls == [
            call.increment_gauge("http_request_pending", ["get_order"]),
            call.decrement_gauge("http_request_pending", ["get_order"]),
            call.observe_histogram("http_request_response_time", ANY, ["get_order"]),
            call.increment_counter("http_request_status_code_count", [200, "get_order"]),
            call.observe_histogram("http_request_body_size", float(len(response.content)), ["get_order"]),
        ]

    def test_error_status_is_recorded(self, client, metrics):
        response = client.get("/orders/7/missing")

        assert response.status_code == 404
        metrics.increment_counter.assert_called_once_with(
            "http_request_status_code_count", [404, "missing_order"]
        )

    def test_streamed_body_is_sized(self, client, metrics):
        response = client.get("/export")

        assert response.content == b"a,b\n1,2\n"
        metrics.observe_histogram.assert_any_call("http_request_body_size", 8.0, ["export"])

    def test_malformed_content_length_does_not_break_the_response(self, client, metrics):
        response = client.get("/legacy")

        assert response.content == b"ok"
        metrics.increment_counter.assert_called_once_with("http_request_status_code_count", [200, "legacy"])
        metrics.observe_histogram.assert_any_call("http_request_body_size", 2.0, ["legacy"])

    def test_exception_is_recorded_as_500(self, client, metrics):
        with pytest.raises(RuntimeError):
            client.get("/boom")

        metrics.decrement_gauge.assert_called_once_with("http_request_pending", ["boom"])
        metrics.increment_counter.assert_called_once_with("http_request_status_code_count", [500, "boom"])

    @pytest.mark.parametrize("path", ["/metrics", "/internal/ping", "/no/such/route"])
    def test_block_listed_requests_are_not_measured(self, client, metrics, path):
        client.get(path)

        assert metrics.mock_calls == []

    def test_observers_are_not_shared_between_requests(self, client, metrics):
        client.get("/orders/1")
        client.get("/orders/2")

        assert metrics.increment_gauge.call_count == 2
        assert metrics.decrement_gauge.call_count == 2
