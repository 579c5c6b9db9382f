from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from ..schemas import MovementBase, StockItemBase, StockRegistration, StockView
from ..deps import get_actor, get_db, require_admin
from ..rate_limit import WRITE_LIMIT, limiter
from ..services import ledger
from ..services import stock as stock_service


router = APIRouter()


@router.get("", response_model=list[StockView])
async def list_stock(
    db: AsyncSession = Depends(get_db),
    location_id: int | None = Query(None, alias="locationId"),
    low: bool = Query(False),
):
    return await stock_service.list_stock(db, location_id=location_id, low_only=low)


@router.post(
    "",
    response_model=StockItemBase,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
@limiter.limit(WRITE_LIMIT)
async def register_stock(
    request: Request,
    payload: StockRegistration,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await ledger.register_or_adjust(
        db,
        payload.material,
        payload.location,
        payload.delta,
        min_quantity=payload.min_quantity,
        reason=payload.reason,
        actor=actor,
    )


@router.get("/{item_id}/movements", response_model=list[MovementBase])
async def list_movements(item_id: int, db: AsyncSession = Depends(get_db)):
    return await stock_service.list_movements(db, item_id)
