import hashlib
import logging
import re
import unicodedata
from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, UniquenessConflict
from ..models import Material, Unit
from .audit import log_action
from .transaction import tx
from .validation import optional_text, parse_unit, require_text

logger = logging.getLogger(__name__)


def fallback_sku(name: str, unit: Unit) -> str:
    """
    SKU for a material registered without one: slug of the name plus a short
    digest of (name, unit). Registering the same product twice lands on the
    same SKU; different names or units never collide on the slug alone.
    """
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    base = re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")[:40].rstrip("-")
    if not base:
        base = "item"
    key = " ".join(name.split()).casefold()
    digest = hashlib.sha1(f"{key}|{unit.value}".encode("utf-8")).hexdigest()[:8]
    return f"{base}-{digest}".upper()


async def _find_by_sku(db: AsyncSession, sku: str) -> Optional[Material]:
    res = await db.execute(select(Material).where(Material.sku == sku))
    return res.scalar_one_or_none()


def _refresh_fields(material: Material, name: str, unit: Unit, photo_url: Optional[str]) -> bool:
    changed = False
    if material.name != name:
        material.name = name
        changed = True
    if material.unit != unit:
        material.unit = unit
        changed = True
    if photo_url is not None and material.photo_url != photo_url:
        material.photo_url = photo_url
        changed = True
    return changed


async def resolve_material(
    db: AsyncSession,
    name: Optional[str],
    unit,
    sku: Optional[str] = None,
    photo_url: Optional[str] = None,
    actor: Optional[str] = None,
) -> Material:
    """
    Resolve-or-create inside the caller's transaction.

    Without a SKU the material is keyed by its derived fallback SKU; a match
    there keeps the stored name, which may differ from ``name`` in case only.
    """
    name = " ".join(require_text(name, "name", 255).split())
    unit = parse_unit(unit)
    sku = optional_text(sku, "sku", 64)
    derived = sku is None
    if derived:
        sku = fallback_sku(name, unit)
    photo_url = optional_text(photo_url, "photo_url", 1024)

    material = await _find_by_sku(db, sku)
    if material is None:
        try:
            async with db.begin_nested():
                material = Material(sku=sku, name=name, unit=unit, photo_url=photo_url)
                db.add(material)
                await db.flush()
        except IntegrityError:
            logger.warning("material sku=%s created concurrently, re-reading", sku)
            material = await _find_by_sku(db, sku)
            if material is None:
                raise UniquenessConflict("material", sku)
        else:
            logger.info("material created id=%s sku=%s", material.id, sku)
            await log_action(
                db, actor, "material_create", "material", material.id,
                {"sku": sku, "name": name, "unit": unit},
            )
            return material

    if _refresh_fields(material, material.name if derived else name, unit, photo_url):
        await db.flush()
        await log_action(
            db, actor, "material_update", "material", material.id,
            {"sku": sku, "name": material.name, "unit": unit, "photo_url": material.photo_url},
        )
    return material


async def resolve_or_create_material(
    db: AsyncSession,
    name: Optional[str],
    unit,
    sku: Optional[str] = None,
    photo_url: Optional[str] = None,
    actor: Optional[str] = None,
) -> Material:
    async with tx(db):
        material = await resolve_material(db, name, unit, sku=sku, photo_url=photo_url, actor=actor)
    return material


async def get_material(db: AsyncSession, material_id: int) -> Material:
    res = await db.execute(select(Material).where(Material.id == material_id))
    material = res.scalar_one_or_none()
    if not material:
        raise NotFoundError("material", material_id)
    return material


async def list_materials(db: AsyncSession, q: Optional[str] = None, skip: int = 0, limit: int = 50) -> list[Material]:
    stmt = select(Material)
    if q:
        stmt = stmt.where(or_(Material.sku.ilike(f"%{q}%"), Material.name.ilike(f"%{q}%")))
    stmt = stmt.order_by(Material.name, Material.id).offset(skip).limit(min(limit, 200))
    res = await db.execute(stmt)
    return list(res.scalars().all())
