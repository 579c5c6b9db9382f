import asyncio
from stockledger.db import AsyncSessionLocal
from stockledger.schemas import LocationRef, MaterialRef
from stockledger.services.ledger import register_or_adjust


async def run():
    async with AsyncSessionLocal() as session:
        await seed_stock(session)


async def seed_stock(session):
    sample = [
        ("ADH-123", "Adhesivo Blanco", "KG", "Oficina", "10", "2"),
        ("PNL-001", "Panel de yeso", "M2", "Bodega", "40", "10"),
        ("PRF-050", "Perfil de aluminio", "ML", "Bodega", "120", None),
        ("TRN-008", "Tornillo 8mm", "PZA", "Oficina", "500", "100"),
        ("SLL-001", "Sellador acrílico", "LT", "Bodega", "6", "2"),
    ]
    for sku, name, unit, location_name, qty, min_qty in sample:
        # register_or_adjust is additive; only seed pairs that are not stocked yet
        item = await register_or_adjust(
            session,
            MaterialRef(sku=sku, name=name, unit=unit),
            LocationRef(name=location_name),
            "0",
            min_quantity=min_qty,
            reason="seed",
            actor="seed",
        )
        if item.quantity == 0:
            await register_or_adjust(
                session,
                MaterialRef(id=item.material_id),
                LocationRef(id=item.location_id),
                qty,
                reason="seed",
                actor="seed",
            )


if __name__ == "__main__":
    asyncio.run(run())
