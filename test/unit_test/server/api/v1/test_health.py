import pytest
from httpx import AsyncClient

from codexalpha import __version__

pytestmark = pytest.mark.asyncio


async def test_health_check_needs_no_token(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "x-process-time" in response.headers


async def test_version(client: AsyncClient):
    response = await client.get("/version")

    assert response.status_code == 200
    assert response.json() == {"version": __version__, "schema_version": "v1"}


async def test_openapi_is_served_under_api_prefix(client: AsyncClient):
    response = await client.get("/api/v1/openapi.json")

    assert response.status_code == 200
    paths = response.json()["paths"]
    assert "/api/v1/persona-runs" in paths
    assert "/api/v1/share-links/verify" in paths
