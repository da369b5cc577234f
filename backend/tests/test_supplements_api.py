import pytest

SUPPLEMENT = {
    "name": "Zinc Picolinate",
    "description": "Supports immune function and wound healing",
    "benefits": ["immune support"],
    "category": "mineral",
    "recommended_dosage": "15 mg",
    "recommended_for_conditions": [{"name": "Low zinc", "description": "Serum zinc below range"}],
    "contraindications": ["copper deficiency"],
    "price": 8.5,
}


@pytest.mark.asyncio
async def test_catalog_read(client, auth_headers, catalog):
    r = await client.get("/api/supplements", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["count"] == 4

    r = await client.get("/api/supplements", params={"category": "mineral"}, headers=auth_headers)
    assert [s["name"] for s in r.json()["data"]] == ["Iron Bisglycinate", "Magnesium Glycinate"]

    supplement_id = catalog["Vitamin D3"].id
    r = await client.get(f"/api/supplements/{supplement_id}", headers=auth_headers)
    assert r.json()["data"]["recommended_dosage"] == "2000 IU"
    assert r.json()["data"]["price"] == 12.5

    assert (await client.get("/api/supplements/9999", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_search(client, auth_headers, catalog):
    r = await client.get("/api/supplements/search", params={"query": "cholesterol"}, headers=auth_headers)
    assert r.status_code == 200
    assert [s["name"] for s in r.json()["data"]] == ["Omega-3 Fish Oil"]

    r = await client.get("/api/supplements/search", headers=auth_headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_write_requires_admin(client, auth_headers):
    r = await client.post("/api/supplements", json=SUPPLEMENT, headers=auth_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "Access denied: Admin role required"


@pytest.mark.asyncio
async def test_admin_crud(client, admin_headers):
    r = await client.post("/api/supplements", json=SUPPLEMENT, headers=admin_headers)
    assert r.status_code == 201, r.text
    created = r.json()["data"]
    assert created["recommended_for_conditions"][0]["name"] == "Low zinc"
    assert created["in_stock"] is True

    r = await client.post("/api/supplements", json=SUPPLEMENT, headers=admin_headers)
    assert r.status_code == 400

    r = await client.put(
        f"/api/supplements/{created['id']}", json={**SUPPLEMENT, "in_stock": False}, headers=admin_headers
    )
    assert r.json()["data"]["in_stock"] is False

    r = await client.delete(f"/api/supplements/{created['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert (await client.get(f"/api/supplements/{created['id']}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_negative_price_rejected(client, admin_headers):
    r = await client.post("/api/supplements", json={**SUPPLEMENT, "price": -1}, headers=admin_headers)
    assert r.status_code == 400
