"""Health endpoint tests."""

import pytest

from tasklist.errors import StoreError


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["store"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_store_down(client, store, monkeypatch):
    """A failing store is reported, but the error text is not."""
    async def broken_ping():
        raise StoreError("connection refused to db.internal:5432")

    monkeypatch.setattr(store, "ping", broken_ping)

    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["store"] == "unavailable"
    assert "db.internal" not in resp.text
