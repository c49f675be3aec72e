"""Health endpoint tests."""

import pytest

pytestmark = pytest.mark.asyncio


async def test_healthcheck(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "ok"
    assert body["timezone"] == "UTC"
    assert "X-Request-ID" in response.headers


async def test_root(app_context: dict[str, object]) -> None:
    client = app_context["client"]
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["message"]
