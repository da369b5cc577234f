import pytest
from httpx import ASGITransport, AsyncClient

from novahealth.main import app


@pytest.mark.asyncio
async def test_root():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_health():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"


@pytest.mark.asyncio
async def test_protected_route_requires_token(client):
    r = await client.get("/api/lab-tests")
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "No authorization token provided"}


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    r = await client.get("/api/recommendations", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token validation failed"
