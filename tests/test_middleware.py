"""Tests for middleware components."""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from webhook_aggregator.main import app
from webhook_aggregator.config import get_settings
from webhook_aggregator.errors import StoreUnavailableError
from webhook_aggregator.services.aggregation_service import get_aggregation_service

settings = get_settings()


@pytest_asyncio.fixture
async def client(service):
    app.dependency_overrides[get_aggregation_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_correlation_id_injection(client):
    """Correlation ID is generated when not provided."""
    response = await client.post("/v1/webhook", json={"key": "k1", "message": "m"})
    assert response.status_code == 200
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_correlation_id_preserved(client):
    correlation_id = "test-correlation-123"
    response = await client.post(
        "/v1/webhook",
        json={"key": "k1", "message": "m"},
        headers={"X-Correlation-ID": correlation_id}
    )
    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.asyncio
async def test_payload_too_large_rejection(client, service):
    """Oversized payloads are rejected before admission."""
    response = await client.post(
        "/v1/webhook",
        json={"key": "k1", "message": "x" * (settings.MAX_EVENT_SIZE + 1000)}
    )
    assert response.status_code == 413
    data = response.json()
    assert data["error"] == "PayloadTooLarge"
    assert data["max_size"] == settings.MAX_EVENT_SIZE
    assert await service.queues.get("k1") is None


@pytest.mark.asyncio
async def test_invalid_json_rejection(client):
    response = await client.post(
        "/v1/webhook",
        content=b"{invalid json}",
        headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidJSON"


@pytest.mark.asyncio
async def test_non_object_body_rejected(client):
    response = await client.post("/v1/webhook", json=["not", "an", "object"])
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_store_unavailable_maps_to_503(client, service):
    """Store failures surface as a structured 503."""

    async def broken_get(key):
        raise StoreUnavailableError("get", "connection refused")

    service.store.get = broken_get

    response = await client.post(
        "/v1/webhook",
        json={"key": "k1", "message": "m"},
        headers={"X-Correlation-ID": "corr-503"},
    )
    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "StoreUnavailable"
    assert data["correlation_id"] == "corr-503"
    assert data["path"] == "/v1/webhook"
