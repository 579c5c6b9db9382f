from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ..models import AuditLog
from ..schemas import AuditEntry
from ..deps import get_db, require_admin


router = APIRouter()


@router.get("", response_model=list[AuditEntry], dependencies=[Depends(require_admin)])
async def list_audit(
    db: AsyncSession = Depends(get_db),
    entity_type: str | None = Query(None, alias="entityType"),
    actor: str | None = Query(None),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
):
    stmt = select(AuditLog)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if actor:
        stmt = stmt.where(AuditLog.actor == actor)
    if date_from:
        stmt = stmt.where(AuditLog.created_at >= date_from)
    if date_to:
        stmt = stmt.where(AuditLog.created_at <= date_to)
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(200)
    res = await db.execute(stmt)
    return res.scalars().all()
