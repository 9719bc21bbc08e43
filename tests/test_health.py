import pytest

pytest.importorskip("loguru")

from httpx import ASGITransport, AsyncClient


@pytest.mark.asyncio()
async def test_health_endpoint(app) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "connections": 0}


@pytest.mark.asyncio()
async def test_unknown_route_is_404(app) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/does-not-exist")

    assert response.status_code == 404
