"""Tests for Prometheus metrics middleware."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY, Counter, Histogram

from datavault.monitoring.middleware import (
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS_TOTAL,
    PrometheusMiddleware,
    mount_metrics,
)


@pytest.fixture
def app():
    """Create a minimal FastAPI app with Prometheus middleware."""
    test_app = FastAPI()
    test_app.add_middleware(PrometheusMiddleware)
    mount_metrics(test_app)

    @test_app.get("/api/v1/health")
    def health():
        return {"status": "ok"}

    @test_app.get("/api/v1/data/{item_id}")
    def item(item_id: str):
        return {"id": item_id}

    @test_app.get("/api/v1/error")
    def error():
        raise HTTPException(status_code=500, detail="test error")

    return test_app


@pytest.fixture
def client(app):
    """TestClient for the middleware test app."""
    return TestClient(app)


def _count(path: str, status: str = "200") -> float:
    labels = {"method": "GET", "path": path, "status": status}
    return REGISTRY.get_sample_value("datavault_http_requests_total", labels) or 0


class TestMetricsEndpoint:
    @staticmethod
    def test_metrics_returns_200(client) -> None:
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    @staticmethod
    def test_metrics_contains_http_series(client) -> None:
        client.get("/api/v1/health")
        response = client.get("/metrics")
        assert "datavault_http_requests_total" in response.text
        assert "datavault_http_request_duration_seconds_count" in response.text


class TestPrometheusMiddleware:
    @staticmethod
    def test_successful_request_recorded(client) -> None:
        before = _count("/api/v1/health")

        client.get("/api/v1/health")

        assert _count("/api/v1/health") == before + 1

    @staticmethod
    def test_labels_use_route_template(client) -> None:
        """Item ids never become label values."""
        before = _count("/api/v1/data/{item_id}")

        client.get("/api/v1/data/abc")
        client.get("/api/v1/data/def")

        assert _count("/api/v1/data/{item_id}") == before + 2
        assert _count("/api/v1/data/abc") == 0

    @staticmethod
    def test_error_request_recorded(client) -> None:
        before = _count("/api/v1/error", status="500")

        client.get("/api/v1/error")

        assert _count("/api/v1/error", status="500") == before + 1

    @staticmethod
    def test_metrics_endpoint_not_recorded(client) -> None:
        client.get("/metrics")
        response = client.get("/metrics")
        lines = [
            line
            for line in response.text.splitlines()
            if line.startswith("datavault_http_requests_total{")
        ]
        for line in lines:
            assert 'path="/metrics' not in line


class TestMetricDefinitions:
    @staticmethod
    def test_http_requests_total_is_counter() -> None:
        assert isinstance(HTTP_REQUESTS_TOTAL, Counter)
        assert HTTP_REQUESTS_TOTAL._name.startswith("datavault_")

    @staticmethod
    def test_http_request_duration_is_histogram() -> None:
        assert isinstance(HTTP_REQUEST_DURATION, Histogram)
        assert HTTP_REQUEST_DURATION._name.startswith("datavault_")
