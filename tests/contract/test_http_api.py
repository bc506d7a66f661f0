"""
Contract tests for the HTTP interface.

Validates status codes and the response envelope of every endpoint.
The command is injected, so application lifespan is not involved.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from portal_executor.interfaces.http.rest import CORRELATION_HEADER, SERVICE_NAME, create_app
from tests.utils import valid_request


pytestmark = [pytest.mark.contract, pytest.mark.asyncio]


@pytest.fixture
def app(command):
    return create_app(command=command)


@pytest.fixture
def client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def assert_envelope(body: dict) -> None:
    for key in ("success", "data", "message", "error", "timestamp", "correlation_id", "version"):
        assert key in body


async def test_health(client):
    async with client:
        response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert_envelope(body)
    assert body["success"] is True
    assert body["data"]["status"] == "healthy"
    assert body["data"]["service"] == SERVICE_NAME
    assert body["data"]["active_executions"] == 0


async def test_ready_and_live(client):
    async with client:
        ready = await client.get("/health/ready")
        live = await client.get("/health/live")

    assert ready.status_code == 200
    assert ready.json()["data"] == {"ready": True}
    assert live.status_code == 200
    assert live.json()["data"] == {"alive": True}


async def test_ready_reports_overload(app, client):
    app.state.max_concurrent_executions = 0

    async with client:
        response = await client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["error"] == "Service overloaded"


async def test_correlation_id_echoed(client):
    async with client:
        response = await client.get("/health/live", headers={CORRELATION_HEADER: "corr-123"})

    assert response.headers[CORRELATION_HEADER] == "corr-123"
    assert response.json()["correlation_id"] == "corr-123"


async def test_execute_success(client):
    async with client:
        response = await client.post("/api/execute", json=valid_request(code='print("API test")'))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["success"] is True
    assert body["data"]["output"] == "API test"
    assert body["data"]["environment"]["containerized"] is False


async def test_execute_validation_error(client):
    request = valid_request()
    del request["exerciseId"]

    async with client:
        response = await client.post("/api/execute", json=request)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "exerciseId" in body["error"]


async def test_execute_security_violation(client):
    async with client:
        response = await client.post("/api/execute", json=valid_request(code="import os"))

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Security violations detected"
    assert body["details"]["security_violation"] is True
    assert body["details"]["timeout"] is False


async def test_execute_malformed_json(client):
    async with client:
        response = await client.post(
            "/api/execute", content=b"{not json", headers={"content-type": "application/json"}
        )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON in request body"


async def test_metrics_and_stats(client):
    async with client:
        await client.post("/api/execute", json=valid_request())
        metrics = await client.get("/api/metrics")
        stats = await client.get("/api/stats")

    data = metrics.json()["data"]
    assert data["total_executions"] == 1
    assert data["successful_executions"] == 1
    assert data["success_rate"] == 100.0
    assert data["active_executions"] == 0

    stats_data = stats.json()["data"]
    assert stats_data["total_executions"] == 1
    assert "peak_memory_usage_mb" in stats_data


async def test_unknown_endpoint(client):
    async with client:
        response = await client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "Endpoint not found: GET /api/nope"
