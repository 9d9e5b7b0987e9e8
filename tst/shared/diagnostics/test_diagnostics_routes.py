"""API tests for admin diagnostics."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_env_check_reports_presence_only(client: AsyncClient, admin_key, monkeypatch):
    monkeypatch.setenv("STORE_PUBLIC_KEY", "pub-secret-value")

    resp = await client.get(
        "/api/diagnostics/env", headers={"X-Admin-Key": admin_key, "apikey": "pub-secret-value"}
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data == {"hasDatabaseUrl": True, "hasPublicKey": True, "hasAdminKey": True}
    assert "pub-secret-value" not in resp.text
    assert admin_key not in resp.text


@pytest.mark.asyncio
async def test_store_check(client: AsyncClient, admin_key):
    resp = await client.get("/api/diagnostics/store", headers={"X-Admin-Key": admin_key})

    assert resp.status_code == 200
    assert resp.json()["data"] == {"count": 0}


@pytest.mark.asyncio
async def test_diagnostics_unconfigured_admin_key(client: AsyncClient):
    resp = await client.get("/api/diagnostics/env", headers={"X-Admin-Key": "anything"})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Admin authentication not configured"}


@pytest.mark.asyncio
async def test_diagnostics_rejects_wrong_key(client: AsyncClient, admin_key):
    resp = await client.get("/api/diagnostics/store", headers={"X-Admin-Key": "wrong"})
    assert resp.status_code == 403
