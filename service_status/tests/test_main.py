"""
Route tests for the status gateway service.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_status.app.adapters.sonar_client import SonarClient
from service_status.app.domain.suppression import SuppressionStore
from service_status.app.main import StatusGatewayService, create_app
from shared.config import get_config


def count(value):
    return {"page_info": {"total_count": value}}


def entities(*ids):
    return {"accounts": {"entities": [{"id": i, "name": f"Account {i}"} for i in ids]}}


class FakeDirectory:
    """MockTransport handler answering each query shape by operation name."""

    def __init__(self):
        self.fail = False
        self.operations = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        query = body["query"]
        if self.fail:
            return httpx.Response(503, text="maintenance")

        if "query equipment_summary" in query:
            self.operations.append("equipment_summary")
            data = {
                "total": count(20),
                "good": count(12),
                "down": count(3),
                "warning": count(2),
                "uninventoried_only": count(3),
            }
        elif "query down_accounts" in query:
            self.operations.append("down_accounts")
            data = entities(1, 2, 3)
        elif "query warning_accounts" in query:
            self.operations.append("warning_accounts")
            data = entities(4, 5)
        else:
            self.operations.append("account_by_id")
            data = entities(body["variables"]["id"])
        return httpx.Response(200, json={"data": data})


def make_config(**overrides):
    options = {
        "sonar_endpoint": "https://sonar.example.net/api/graphql",
        "sonar_token": "token",
        "suppressions_file": None,
        "cache_ttl_ms": 60_000,
    }
    options.update(overrides)
    return get_config("status", **options)


class TestStatusGatewayService:
    """Test cases for StatusGatewayService routes."""

    @pytest.fixture
    def directory(self):
        return FakeDirectory()

    @pytest.fixture
    def app(self, directory):
        config = make_config()
        sonar = SonarClient(
            config.sonar_endpoint,
            config.sonar_token,
            transport=httpx.MockTransport(directory),
        )
        return create_app(config, client=sonar, suppressions=SuppressionStore(accounts=["2"]))

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_status_summary(self, client):
        response = client.get("/api/status-summary")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["source"] == "sonar"
        assert body["summary"]["customerEquipment"] == {
            "good": 12,
            "warning": 2,
            "down": 2,
            "uninventoried": 3,
            "total": 19,
        }
        assert body["summary"]["infrastructureEquipment"] == {"good": 0, "warning": 0, "bad": 0, "down": 0}
        assert body["summary"]["meta"]["suppressed"] == {"down": 1, "warning": 0}

    def test_status_summary_served_from_cache(self, client, directory):
        client.get("/api/status-summary")
        response = client.get("/api/status-summary")

        assert response.json()["source"] == "cache"
        assert directory.operations.count("equipment_summary") == 1

    def test_down_customers(self, client):
        response = client.get("/api/down-customers")

        body = response.json()
        assert body["ok"] is True
        assert [row["customerId"] for row in body["customers"]] == ["1", "3"]
        assert body["customers"][0]["status"] == "Down"
        assert body["meta"] == {"raw": 3, "suppressed": 1, "visible": 2}

    def test_warning_customers(self, client):
        body = client.get("/api/warning-customers").json()

        assert [row["customerId"] for row in body["customers"]] == ["4", "5"]

    def test_suppressed_customers(self, client):
        body = client.get("/api/suppressed-customers").json()

        assert body["ok"] is True
        assert body["customers"][0]["customerId"] == "2"
        assert body["customers"][0]["status"] == "Suppressed"

    def test_upstream_failure_returns_zero_summary(self, client, directory):
        directory.fail = True

        response = client.get("/api/status-summary")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is False
        assert body["source"] == "error"
        assert body["code"] == "EXTERNAL_SERVICE_ERROR"
        assert body["summary"]["customerEquipment"]["total"] == 0

    def test_suppression_round_trip_invalidates_summary(self, client, directory):
        client.get("/api/status-summary")

        response = client.post("/api/suppressions/accounts/1")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "accountId": "1", "changed": True}
        assert client.get("/api/suppressions").json() == {"ok": True, "accounts": ["2", "1"]}

        summary = client.get("/api/status-summary").json()
        assert summary["source"] == "sonar"
        assert summary["summary"]["customerEquipment"]["down"] == 1

        response = client.delete("/api/suppressions/accounts/1")
        assert response.json()["changed"] is True
        assert client.get("/api/suppressions").json()["accounts"] == ["2"]

    def test_cache_stats_and_invalidate(self, client):
        client.get("/api/status-summary")

        stats = client.get("/api/cache/stats").json()
        assert stats["entries"]["summary"]["fresh"] is True

        assert client.post("/api/cache/invalidate").json() == {"ok": True}
        stats = client.get("/api/cache/stats").json()
        assert stats["entries"]["summary"]["fresh"] is False

    def test_health_endpoints(self, client):
        health = client.get("/health").json()
        assert health["status"] == "ok"
        assert health["dependencies"] == {"sonar": "ok"}

        healthz = client.get("/healthz").json()
        assert healthz["service"] == "status"
        assert healthz["status"] == "ok"

    def test_metrics_endpoint(self, client):
        client.get("/api/status-summary")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "status_cache_lookups_total" in response.text

    def test_request_id_header_is_echoed(self, client):
        response = client.get("/healthz", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestUnconfiguredGateway:
    """The gateway boots without credentials and reports per operation."""

    @pytest.fixture
    def client(self):
        config = make_config(sonar_endpoint=None, sonar_token=None)
        return TestClient(create_app(config, suppressions=SuppressionStore()))

    def test_summary_reports_configuration_error(self, client):
        body = client.get("/api/status-summary").json()

        assert body["ok"] is False
        assert body["code"] == "CONFIGURATION_ERROR"
        assert "SONAR_ENDPOINT" in body["error"]

    def test_health_reports_unconfigured(self, client):
        assert client.get("/healthz").json()["status"] == "degraded"

    def test_empty_suppressed_list_needs_no_upstream(self, client):
        body = client.get("/api/suppressed-customers").json()

        assert body == {"ok": True, "source": "local", "customers": []}

    def test_invalid_mutation_is_rejected(self):
        service = StatusGatewayService(make_config(), suppressions=SuppressionStore())
        result = service._mutation_response(service.status_service.suppress(""))

        assert result.status_code == 400
        assert json.loads(result.body)["code"] == "VALIDATION_ERROR"
