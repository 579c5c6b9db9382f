import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from ..models import AuditLog


def _jsonable(payload: Optional[dict]) -> Optional[dict]:
    # JSON columns reject Decimal; keep quantities exact as strings
    if payload is None:
        return None
    out = {}
    for key, value in payload.items():
        if isinstance(value, Decimal):
            value = str(value)
        elif isinstance(value, enum.Enum):
            value = value.value
        out[key] = value
    return out


async def log_action(
    db: AsyncSession,
    actor: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Optional[int],
    payload: Optional[dict] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; committed with the change it records."""
    entry = AuditLog(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload_json=_jsonable(payload),
        created_at=datetime.utcnow(),
    )
    db.add(entry)
    await db.flush()
    return entry
