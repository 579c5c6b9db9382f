"""
Ledger write path.

Every quantity change goes through ``register_or_adjust``: the stock item is
row-locked, the delta is applied by a conditional in-database increment, and
exactly one Movement is appended, all in one transaction. ``quantity`` is
never computed in Python and written back.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import InsufficientStockError, UniquenessConflict, ValidationError
from ..models import Location, Material, Movement, StockItem
from ..schemas import LocationRef, MaterialRef
from .audit import log_action
from .locations import get_location, resolve_location
from .materials import get_material, resolve_material
from .transaction import tx
from .validation import QTY_LIMIT, optional_quantity, optional_text, to_quantity

logger = logging.getLogger(__name__)

INITIAL_REASON = "initial registration"
ADJUST_REASON = "adjustment"


async def _material_for(db: AsyncSession, ref: MaterialRef, actor: Optional[str]) -> Material:
    if ref.id is not None:
        return await get_material(db, ref.id)
    return await resolve_material(db, ref.name, ref.unit, sku=ref.sku, photo_url=ref.photo_url, actor=actor)


async def _location_for(db: AsyncSession, ref: LocationRef, actor: Optional[str]) -> Location:
    if ref.id is not None:
        return await get_location(db, ref.id)
    return await resolve_location(db, ref.name, actor=actor)


async def _lock_stock_item(db: AsyncSession, material_id: int, location_id: int) -> Optional[StockItem]:
    stmt = (
        select(StockItem)
        .where(
            StockItem.material_id == material_id,
            StockItem.location_id == location_id,
        )
        .with_for_update()
    )
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def _create_stock_item(
    db: AsyncSession, material_id: int, location_id: int, min_quantity: Optional[Decimal]
) -> tuple[StockItem, bool]:
    try:
        async with db.begin_nested():
            item = StockItem(
                material_id=material_id,
                location_id=location_id,
                quantity=Decimal("0"),
                min_quantity=min_quantity,
            )
            db.add(item)
            await db.flush()
    except IntegrityError:
        # another writer registered the same pair first
        logger.warning("stock item material=%s location=%s created concurrently", material_id, location_id)
        item = await _lock_stock_item(db, material_id, location_id)
        if item is None:
            raise UniquenessConflict("stock item", f"{material_id}/{location_id}")
        return item, False
    logger.info("stock item created id=%s material=%s location=%s", item.id, material_id, location_id)
    return item, True


async def _apply_delta(
    db: AsyncSession, item: StockItem, delta: Decimal, reason: str, actor: Optional[str]
) -> Movement:
    stmt = (
        update(StockItem)
        .where(
            StockItem.id == item.id,
            StockItem.quantity + delta >= 0,
            StockItem.quantity + delta < QTY_LIMIT,
        )
        .values(quantity=StockItem.quantity + delta, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(stmt)
    if res.rowcount != 1:
        await db.refresh(item, ["quantity"])
        if item.quantity + delta >= QTY_LIMIT:
            raise ValidationError(f"delta would take stock item {item.id} past {QTY_LIMIT:f}", field="delta")
        logger.warning("rejected delta %s on stock item %s holding %s", delta, item.id, item.quantity)
        raise InsufficientStockError(item.id, item.quantity, delta)
    movement = Movement(item_id=item.id, delta=delta, reason=reason, actor=actor)
    db.add(movement)
    await db.flush()
    logger.info("movement id=%s item=%s delta=%s", movement.id, item.id, delta)
    return movement


async def register_or_adjust(
    db: AsyncSession,
    material: MaterialRef,
    location: LocationRef,
    delta,
    min_quantity=None,
    reason: Optional[str] = None,
    actor: Optional[str] = None,
) -> StockItem:
    """
    Register a (material, location) pair or adjust its quantity by ``delta``.

    A new pair starts at zero and must receive a non-negative delta. An
    existing pair rejects a delta that would take it below zero with
    InsufficientStockError, leaving every row untouched. ``min_quantity``
    is only overwritten when supplied. Returns the item with material and
    location loaded.
    """
    delta = to_quantity(delta, "delta")
    min_quantity = optional_quantity(min_quantity, "min_quantity")
    reason = optional_text(reason, "reason", 255)
    actor = optional_text(actor, "actor", 120)

    async with tx(db):
        mat = await _material_for(db, material, actor)
        loc = await _location_for(db, location, actor)

        item = await _lock_stock_item(db, mat.id, loc.id)
        created = False
        if item is None:
            if delta < 0:
                raise ValidationError("initial quantity must not be negative", field="delta")
            item, created = await _create_stock_item(db, mat.id, loc.id, min_quantity)
        if not created and min_quantity is not None:
            item.min_quantity = min_quantity
            await db.flush()

        movement = None
        if delta != 0:
            movement = await _apply_delta(
                db, item, delta, reason or (INITIAL_REASON if created else ADJUST_REASON), actor
            )

        await log_action(
            db,
            actor,
            "stock_register" if created else "stock_adjust",
            "stock_item",
            item.id,
            {
                "material_id": mat.id,
                "location_id": loc.id,
                "delta": delta,
                "min_quantity": min_quantity,
                "movement_id": movement.id if movement else None,
            },
        )
        await db.refresh(item, ["quantity", "min_quantity", "updated_at", "material", "location"])
    return item
