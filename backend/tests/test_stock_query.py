from decimal import Decimal

import pytest

from stockledger.exceptions import NotFoundError
from stockledger.models import Unit
from stockledger.schemas import LocationRef, MaterialRef
from stockledger.services.ledger import register_or_adjust
from stockledger.services.stock import list_movements, list_stock


@pytest.fixture
async def stocked(db):
    office, warehouse = LocationRef(name="Oficina"), LocationRef(name="Bodega")
    adhesive = MaterialRef(sku="ADH-123", name="Adhesivo Blanco", unit="KG", photo_url="http://img/adh.jpg")
    panel = MaterialRef(sku="PNL-001", name="Panel de yeso", unit="M2")
    screw = MaterialRef(sku="TRN-008", name="Tornillo 8mm", unit="PZA")

    await register_or_adjust(db, screw, office, 500, min_quantity="100")
    await register_or_adjust(db, adhesive, office, 10, min_quantity="2")
    await register_or_adjust(db, panel, warehouse, 40, min_quantity="50")
    await register_or_adjust(db, adhesive, warehouse, 1)
    await register_or_adjust(db, adhesive, office, -9, reason="obra 12")
    return {"office": office, "warehouse": warehouse, "adhesive": adhesive}


async def test_list_stock_ordering(db, stocked):
    views = await list_stock(db)
    assert [(v.location_name, v.material_name) for v in views] == [
        ("Bodega", "Adhesivo Blanco"),
        ("Bodega", "Panel de yeso"),
        ("Oficina", "Adhesivo Blanco"),
        ("Oficina", "Tornillo 8mm"),
    ]


async def test_list_stock_view_fields(db, stocked):
    views = await list_stock(db)
    office_adhesive = views[2]
    assert office_adhesive.sku == "ADH-123"
    assert office_adhesive.unit == Unit.KG
    assert office_adhesive.quantity == Decimal("1")
    assert office_adhesive.min_quantity == Decimal("2")
    assert office_adhesive.photo_url == "http://img/adh.jpg"
    assert office_adhesive.last_movement.delta == Decimal("-9")
    assert office_adhesive.last_movement.reason == "obra 12"

    warehouse_adhesive = views[0]
    assert warehouse_adhesive.min_quantity is None
    assert warehouse_adhesive.last_movement.delta == Decimal("1")


async def test_list_stock_low_only(db, stocked):
    low = await list_stock(db, low_only=True)
    assert sorted(v.sku for v in low) == ["ADH-123", "PNL-001"]
    assert all(v.min_quantity is not None for v in low)


async def test_list_stock_by_location(db, stocked):
    views = await list_stock(db)
    warehouse_id = views[0].location_id
    filtered = await list_stock(db, location_id=warehouse_id)
    assert {v.location_name for v in filtered} == {"Bodega"}
    assert len(filtered) == 2


async def test_list_stock_empty(db):
    assert await list_stock(db) == []


async def test_list_movements_newest_first(db, stocked):
    views = await list_stock(db)
    movements = await list_movements(db, views[2].item_id)
    assert [m.delta for m in movements] == [Decimal("-9"), Decimal("10")]


async def test_list_movements_unknown_item(db):
    with pytest.raises(NotFoundError):
        await list_movements(db, 12345)
