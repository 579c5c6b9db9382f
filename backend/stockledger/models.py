import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    JSON,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db import Base


QTY = Numeric(14, 3)


class Unit(str, enum.Enum):
    PZA = "PZA"
    M2 = "M2"
    ML = "ML"
    KG = "KG"
    LT = "LT"


class Material(Base):
    __tablename__ = "materials"
    __table_args__ = (
        UniqueConstraint("sku", name="uq_materials_sku"),
        Index("idx_materials_name", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    unit: Mapped[Unit] = mapped_column(Enum(Unit))
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    stock_items: Mapped[list["StockItem"]] = relationship(back_populates="material")


class Location(Base):
    """Storage place. ``name`` is not unique; identify rows by id."""

    __tablename__ = "locations"
    __table_args__ = (Index("idx_locations_name", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    stock_items: Mapped[list["StockItem"]] = relationship(back_populates="location")


class StockItem(Base):
    __tablename__ = "stock_items"
    __table_args__ = (
        Index("idx_stock_items_material_location", "material_id", "location_id", unique=True),
        CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    material_id: Mapped[int] = mapped_column(ForeignKey("materials.id"))
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"))
    quantity: Mapped[Decimal] = mapped_column(QTY, default=Decimal("0"))
    min_quantity: Mapped[Optional[Decimal]] = mapped_column(QTY, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    material: Mapped[Material] = relationship(back_populates="stock_items")
    location: Mapped[Location] = relationship(back_populates="stock_items")
    movements: Mapped[list["Movement"]] = relationship(back_populates="item")


class Movement(Base):
    """Append-only. The sum of ``delta`` per item equals ``StockItem.quantity``."""

    __tablename__ = "movements"
    __table_args__ = (Index("idx_movements_item_created", "item_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("stock_items.id"))
    delta: Mapped[Decimal] = mapped_column(QTY)
    reason: Mapped[str] = mapped_column(String(255))
    actor: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    item: Mapped[StockItem] = relationship(back_populates="movements")


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    action: Mapped[str] = mapped_column(String(120))
    entity_type: Mapped[str] = mapped_column(String(120))
    entity_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    payload_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
