import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models import Location
from .audit import log_action
from .transaction import tx
from .validation import require_text

logger = logging.getLogger(__name__)


async def resolve_location(db: AsyncSession, name: Optional[str], actor: Optional[str] = None) -> Location:
    """
    First location with this name (lowest id), created if none exists.

    ``locations.name`` carries no unique constraint, so two callers creating
    the same new name at once both succeed and leave duplicate rows. Callers
    must key on ``Location.id``; adding a constraint needs a dedupe migration
    first.
    """
    name = require_text(name, "location name", 120)
    res = await db.execute(select(Location).where(Location.name == name).order_by(Location.id).limit(1))
    location = res.scalar_one_or_none()
    if location:
        return location
    location = Location(name=name)
    db.add(location)
    await db.flush()
    logger.info("location created id=%s name=%s", location.id, name)
    await log_action(db, actor, "location_create", "location", location.id, {"name": name})
    return location


async def resolve_or_create_location(db: AsyncSession, name: Optional[str], actor: Optional[str] = None) -> Location:
    async with tx(db):
        location = await resolve_location(db, name, actor=actor)
    return location


async def get_location(db: AsyncSession, location_id: int) -> Location:
    res = await db.execute(select(Location).where(Location.id == location_id))
    location = res.scalar_one_or_none()
    if not location:
        raise NotFoundError("location", location_id)
    return location


async def list_locations(db: AsyncSession, name: Optional[str] = None) -> list[Location]:
    stmt = select(Location)
    if name:
        stmt = stmt.where(Location.name == name.strip())
    res = await db.execute(stmt.order_by(Location.name, Location.id))
    return list(res.scalars().all())
