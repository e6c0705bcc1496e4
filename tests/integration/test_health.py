from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import InMemoryS3Client


def test_liveness_and_readiness(client: TestClient, audit_s3_client: InMemoryS3Client) -> None:
    health = client.get("/api/healthz")
    ready = client.get("/api/readyz")

    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    assert ready.status_code == 200
    assert ready.json()["status"] == "ready"
    assert "X-Request-ID" not in health.headers
    assert audit_s3_client.buckets.get("class-action-audit-logs", {}) == {}


def test_metrics_are_exposed(client: TestClient) -> None:
    client.get("/api/companies/atos/statistics")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert 'path="/api/companies/{company}/statistics"' in response.text
