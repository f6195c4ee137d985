# inventory_search/db_models.py
"""
SQLAlchemy ORM Models for Inventory Search.

Mirror of the inventory backend's item tables. The search service only
reads these; the relational store owns every row.
"""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    String, Integer, BigInteger, Text, DateTime, Numeric, ForeignKey, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_search.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY
PK = BigInteger().with_variant(Integer, "sqlite")


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


# ============================================================================
# LOOKUP ENTITIES (id + title, denormalized into the index)
# ============================================================================

class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    items: Mapped[List["Item"]] = relationship(back_populates="category")


class Warehouse(TimestampMixin, Base):
    __tablename__ = "warehouses"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255))

    items: Mapped[List["Item"]] = relationship(back_populates="warehouse")


class Brand(TimestampMixin, Base):
    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    items: Mapped[List["Item"]] = relationship(back_populates="brand")


class Supplier(TimestampMixin, Base):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))

    items: Mapped[List["Item"]] = relationship(back_populates="supplier")


class Unit(TimestampMixin, Base):
    __tablename__ = "units"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    abbreviation: Mapped[Optional[str]] = mapped_column(String(20))

    items: Mapped[List["Item"]] = relationship(back_populates="unit")


# ============================================================================
# ITEMS
# ============================================================================

class Item(TimestampMixin, Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(PK, primary_key=True)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    barcode: Mapped[Optional[str]] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    selling_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    buying_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    re_order_point: Mapped[Optional[int]] = mapped_column(Integer)
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 3))
    tax_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    image_url: Mapped[Optional[str]] = mapped_column(String(1000))

    category_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("categories.id", ondelete="SET NULL"))
    warehouse_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("warehouses.id", ondelete="SET NULL"))
    brand_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("brands.id", ondelete="SET NULL"))
    supplier_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("suppliers.id", ondelete="SET NULL"))
    unit_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("units.id", ondelete="SET NULL"))

    # Relationships
    category: Mapped[Optional["Category"]] = relationship(back_populates="items")
    warehouse: Mapped[Optional["Warehouse"]] = relationship(back_populates="items")
    brand: Mapped[Optional["Brand"]] = relationship(back_populates="items")
    supplier: Mapped[Optional["Supplier"]] = relationship(back_populates="items")
    unit: Mapped[Optional["Unit"]] = relationship(back_populates="items")

    __table_args__ = (
        Index("idx_items_category", "category_id"),
        Index("idx_items_warehouse", "warehouse_id"),
        Index("idx_items_brand", "brand_id"),
        Index("idx_items_supplier", "supplier_id"),
        Index("idx_items_unit", "unit_id"),
    )


# Relations carried into the index document, in document order
RELATION_NAMES = ("category", "warehouse", "brand", "supplier", "unit")
