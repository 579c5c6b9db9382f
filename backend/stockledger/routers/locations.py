from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ..schemas import LocationBase, LocationCreate
from ..deps import get_actor, get_db, require_admin
from ..rate_limit import WRITE_LIMIT, limiter
from ..services import locations as location_service

router = APIRouter()


@router.get("", response_model=list[LocationBase])
async def list_locations(
    db: AsyncSession = Depends(get_db),
    name: str | None = Query(None),
):
    return await location_service.list_locations(db, name=name)


@router.post("", response_model=LocationBase, dependencies=[Depends(require_admin)])
@limiter.limit(WRITE_LIMIT)
async def resolve_location(
    request: Request,
    payload: LocationCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await location_service.resolve_or_create_location(db, payload.name, actor=actor)
