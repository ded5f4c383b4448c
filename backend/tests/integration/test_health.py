"""Integration tests for observability endpoints

Tests cover:
- /health component report
- /ready probe
- /metrics exposition
- Request ID propagation
"""

import pytest
from fastapi.testclient import TestClient

import sys
from pathlib import Path
backend_src = Path(__file__).parent.parent.parent / "src"
sys.path.insert(0, str(backend_src))


pytestmark = pytest.mark.integration


class TestHealth:
    """Test health and readiness probes"""

    def test_health_reports_components(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        components = response.json()["components"]
        assert components["database"]["status"] == "healthy"
        assert "push_transport" in components

    def test_push_transport_healthy_when_started(self, app):
        """Test the lifespan starts the push transport"""
        with TestClient(app) as client:
            response = client.get("/health")

        assert response.json()["components"]["push_transport"]["status"] == "healthy"

    def test_ready(self, client: TestClient):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestMetrics:
    """Test Prometheus exposition"""

    def test_metrics_after_send(self, alice_client: TestClient, bob):
        alice_client.post("/api/v1/messages/send", json={"receiver": "bob", "subject": "Hi", "body": "x"})

        response = alice_client.get("/metrics")

        assert response.status_code == 200
        assert 'letterbox_messages_created_total{kind="send"}' in response.text


class TestRequestId:
    """Test X-Request-ID correlation"""

    def test_request_id_echoed(self, client: TestClient):
        response = client.get("/ready", headers={"X-Request-ID": "test-request-123"})

        assert response.headers["X-Request-ID"] == "test-request-123"

    def test_request_id_generated(self, client: TestClient):
        response = client.get("/ready")

        assert response.headers.get("X-Request-ID")
