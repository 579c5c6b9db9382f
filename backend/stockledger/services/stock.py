from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models import Location, Material, Movement, StockItem
from ..schemas import LedgerDrift, MovementBase, StockView

Q = Decimal("0.001")


async def _latest_movements(db: AsyncSession, item_ids: list[int]) -> dict[int, Movement]:
    if not item_ids:
        return {}
    ranked = (
        select(
            Movement.id.label("movement_id"),
            func.row_number()
            .over(partition_by=Movement.item_id, order_by=(Movement.created_at.desc(), Movement.id.desc()))
            .label("rn"),
        )
        .where(Movement.item_id.in_(item_ids))
        .subquery()
    )
    stmt = select(Movement).join(ranked, ranked.c.movement_id == Movement.id).where(ranked.c.rn == 1)
    res = await db.execute(stmt)
    return {m.item_id: m for m in res.scalars().all()}


async def list_stock(
    db: AsyncSession, location_id: Optional[int] = None, low_only: bool = False
) -> list[StockView]:
    """Snapshot of every stock item, ordered by location name, material name, item id."""
    stmt = (
        select(StockItem, Material, Location)
        .join(Material, StockItem.material_id == Material.id)
        .join(Location, StockItem.location_id == Location.id)
    )
    if location_id:
        stmt = stmt.where(StockItem.location_id == location_id)
    if low_only:
        stmt = stmt.where(StockItem.min_quantity.is_not(None), StockItem.quantity <= StockItem.min_quantity)
    stmt = stmt.order_by(Location.name, Material.name, StockItem.id)
    rows = (await db.execute(stmt)).all()
    latest = await _latest_movements(db, [item.id for item, _, _ in rows])
    views = []
    for item, material, location in rows:
        last = latest.get(item.id)
        views.append(
            StockView(
                item_id=item.id,
                material_id=material.id,
                material_name=material.name,
                sku=material.sku,
                unit=material.unit,
                location_id=location.id,
                location_name=location.name,
                quantity=item.quantity,
                min_quantity=item.min_quantity,
                photo_url=material.photo_url,
                last_movement=MovementBase.model_validate(last) if last else None,
            )
        )
    return views


async def list_movements(db: AsyncSession, item_id: int) -> list[Movement]:
    res = await db.execute(select(StockItem.id).where(StockItem.id == item_id))
    if res.scalar_one_or_none() is None:
        raise NotFoundError("stock item", item_id)
    res = await db.execute(
        select(Movement)
        .where(Movement.item_id == item_id)
        .order_by(Movement.created_at.desc(), Movement.id.desc())
    )
    return list(res.scalars().all())


async def find_ledger_drift(db: AsyncSession) -> list[LedgerDrift]:
    """Items whose cached quantity disagrees with the sum of their movements. Report only."""
    totals = (
        select(Movement.item_id, func.sum(Movement.delta).label("total"))
        .group_by(Movement.item_id)
        .subquery()
    )
    stmt = (
        select(StockItem.id, StockItem.quantity, totals.c.total)
        .outerjoin(totals, totals.c.item_id == StockItem.id)
        .order_by(StockItem.id)
    )
    drift = []
    for item_id, quantity, total in (await db.execute(stmt)).all():
        quantity = Decimal(str(quantity)).quantize(Q)
        total = Decimal(str(total or 0)).quantize(Q)
        if quantity != total:
            drift.append(LedgerDrift(item_id=item_id, quantity=quantity, movement_total=total))
    return drift
