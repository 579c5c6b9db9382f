from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from .models import Unit


class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class MaterialBase(CamelModel):
    id: int
    sku: str
    name: str
    unit: Unit
    photo_url: Optional[str]
    created_at: datetime


class MaterialCreate(CamelModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    photo_url: Optional[str] = None


class LocationBase(CamelModel):
    id: int
    name: str
    created_at: datetime


class LocationCreate(CamelModel):
    name: Optional[str] = None


class MaterialRef(MaterialCreate):
    """Either ``id`` of an existing material, or the fields to resolve one by."""

    id: Optional[int] = None


class LocationRef(LocationCreate):
    id: Optional[int] = None


class MovementBase(CamelModel):
    id: int
    item_id: int
    delta: Decimal
    reason: str
    actor: Optional[str]
    created_at: datetime


class StockItemBase(CamelModel):
    id: int
    material_id: int
    location_id: int
    quantity: Decimal
    min_quantity: Optional[Decimal]
    created_at: datetime
    updated_at: datetime
    material: MaterialBase
    location: LocationBase


class StockRegistration(CamelModel):
    material: MaterialRef
    location: LocationRef
    delta: Decimal = Decimal("0")
    min_quantity: Optional[Decimal] = None
    reason: Optional[str] = None


class StockView(CamelModel):
    item_id: int
    material_id: int
    material_name: str
    sku: str
    unit: Unit
    location_id: int
    location_name: str
    quantity: Decimal
    min_quantity: Optional[Decimal] = None
    photo_url: Optional[str] = None
    last_movement: Optional[MovementBase] = None


class LedgerDrift(CamelModel):
    item_id: int
    quantity: Decimal
    movement_total: Decimal


class AuditEntry(CamelModel):
    id: int
    actor: Optional[str]
    action: str
    entity_type: str
    entity_id: Optional[int]
    payload_json: Optional[dict]
    created_at: datetime
