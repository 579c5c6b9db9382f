from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ..schemas import MaterialBase, MaterialCreate
from ..deps import get_actor, get_db, require_admin
from ..rate_limit import WRITE_LIMIT, limiter
from ..services import materials as material_service

router = APIRouter()


@router.get("", response_model=list[MaterialBase])
async def list_materials(
    db: AsyncSession = Depends(get_db),
    q: str | None = Query(None),
    skip: int = 0,
    limit: int = 50,
):
    return await material_service.list_materials(db, q=q, skip=skip, limit=limit)


@router.get("/{material_id}", response_model=MaterialBase)
async def get_material(material_id: int, db: AsyncSession = Depends(get_db)):
    return await material_service.get_material(db, material_id)


@router.post("", response_model=MaterialBase, dependencies=[Depends(require_admin)])
@limiter.limit(WRITE_LIMIT)
async def resolve_material(
    request: Request,
    payload: MaterialCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    return await material_service.resolve_or_create_material(
        db, payload.name, payload.unit, sku=payload.sku, photo_url=payload.photo_url, actor=actor
    )
