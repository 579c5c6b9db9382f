from decimal import Decimal

from stockledger.services import materials as material_service


ADMIN_HEADERS = {"X-Admin-Secret": "test-secret"}


REGISTRATION = {
    "material": {"sku": "ADH-123", "name": "Adhesivo Blanco", "unit": "KG", "photoUrl": "http://img/adh.jpg"},
    "location": {"name": "Oficina"},
    "delta": "10",
    "minQuantity": "2",
}


async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "ok"}
    assert (await client.get("/ready")).status_code == 200


async def test_register_requires_admin_secret(client):
    response = await client.post("/inventory", json=REGISTRATION)
    assert response.status_code == 401

    response = await client.post("/inventory", json=REGISTRATION, headers={"X-Admin-Secret": "nope"})
    assert response.status_code == 401

    assert (await client.get("/inventory")).json() == []


async def test_register_and_list(client):
    response = await client.post("/inventory", json=REGISTRATION, headers={**ADMIN_HEADERS, "X-Actor": "ana"})
    assert response.status_code == 201
    item = response.json()
    assert Decimal(item["quantity"]) == Decimal("10")
    assert Decimal(item["minQuantity"]) == Decimal("2")
    assert item["material"]["sku"] == "ADH-123"
    assert item["material"]["photoUrl"] == "http://img/adh.jpg"
    assert item["location"]["name"] == "Oficina"

    response = await client.get("/inventory")
    assert response.status_code == 200
    [view] = response.json()
    assert view["itemId"] == item["id"]
    assert view["materialName"] == "Adhesivo Blanco"
    assert view["locationName"] == "Oficina"
    assert view["unit"] == "KG"
    assert Decimal(view["lastMovement"]["delta"]) == Decimal("10")
    assert view["lastMovement"]["actor"] == "ana"


async def test_bearer_credential_accepted(client):
    response = await client.post(
        "/inventory", json=REGISTRATION, headers={"Authorization": "Bearer  test-secret "}
    )
    assert response.status_code == 201


async def test_insufficient_stock_returns_conflict(client):
    await client.post("/inventory", json=REGISTRATION, headers=ADMIN_HEADERS)
    adjust = {**REGISTRATION, "delta": "-3", "minQuantity": None}
    response = await client.post("/inventory", json=adjust, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    assert Decimal(response.json()["quantity"]) == Decimal("7")

    response = await client.post("/inventory", json={**adjust, "delta": "-20"}, headers=ADMIN_HEADERS)
    assert response.status_code == 409
    assert response.json()["error"] == "INSUFFICIENT_STOCK"

    item_id = (await client.get("/inventory")).json()[0]["itemId"]
    movements = (await client.get(f"/inventory/{item_id}/movements")).json()
    assert [Decimal(m["delta"]) for m in movements] == [Decimal("-3"), Decimal("10")]
    assert all(m["itemId"] == item_id for m in movements)


async def test_invalid_unit_is_bad_request(client):
    payload = {**REGISTRATION, "material": {"sku": "X-1", "name": "Cosa", "unit": "M3"}}
    response = await client.post("/inventory", json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_movements_for_unknown_item(client):
    response = await client.get("/inventory/999/movements")
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


async def test_materials_and_locations_endpoints(client):
    response = await client.post(
        "/materials", json={"sku": "PNL-001", "name": "Panel de yeso", "unit": "m2"}, headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    material = response.json()
    assert material["unit"] == "M2"

    again = await client.post(
        "/materials", json={"sku": "PNL-001", "name": "Panel de yeso 12mm", "unit": "M2"}, headers=ADMIN_HEADERS
    )
    assert again.json()["id"] == material["id"]
    assert again.json()["name"] == "Panel de yeso 12mm"

    assert (await client.get(f"/materials/{material['id']}")).json()["sku"] == "PNL-001"
    assert (await client.get("/materials/999")).status_code == 404

    response = await client.post("/locations", json={"name": "Bodega"}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert [loc["name"] for loc in (await client.get("/locations")).json()] == ["Bodega"]

    response = await client.post("/locations", json={"name": " "}, headers=ADMIN_HEADERS)
    assert response.status_code == 400


async def test_audit_requires_admin(client):
    await client.post("/inventory", json=REGISTRATION, headers={**ADMIN_HEADERS, "X-Actor": "ana"})
    assert (await client.get("/audit")).status_code == 401

    entries = (await client.get("/audit", headers=ADMIN_HEADERS)).json()
    assert {e["action"] for e in entries} == {"material_create", "location_create", "stock_register"}
    assert all(e["actor"] == "ana" for e in entries)


async def test_unresolved_sku_conflict_is_conflict(client, miss_lookup):
    payload = {"sku": "PNL-001", "name": "Panel de yeso", "unit": "M2"}
    assert (await client.post("/materials", json=payload, headers=ADMIN_HEADERS)).status_code == 200

    miss_lookup(material_service, "_find_by_sku")
    response = await client.post("/materials", json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 409
    assert response.json()["error"] == "UNIQUENESS_CONFLICT"
    assert len((await client.get("/materials")).json()) == 1


async def test_delta_beyond_storage_scale_is_bad_request(client):
    response = await client.post("/inventory", json={**REGISTRATION, "delta": "0.0004"}, headers=ADMIN_HEADERS)
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
