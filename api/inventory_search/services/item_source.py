# inventory_search/services/item_source.py
"""
Read-only access to items in the relational store, relations resolved.
"""
from __future__ import annotations
from contextlib import AbstractAsyncContextManager
from typing import AsyncIterator, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inventory_search.database import get_session_context
from inventory_search.db_models import Item, RELATION_NAMES

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

# wire name -> Item column
RELATION_FIELDS: Dict[str, str] = {
    "categoryId": "category_id",
    "warehouseId": "warehouse_id",
    "brandId": "brand_id",
    "supplierId": "supplier_id",
    "unitId": "unit_id",
}


def resolve_relation_field(field: str) -> str:
    """Map ``brandId`` / ``brand_id`` to the Item column name."""
    if field in RELATION_FIELDS:
        return RELATION_FIELDS[field]
    if field in RELATION_FIELDS.values():
        return field
    raise ValueError(f"Unknown relation field: {field!r}")


def _with_relations(stmt):
    return stmt.options(*(selectinload(getattr(Item, name)) for name in RELATION_NAMES))


class ItemSource:
    """Fetches items with category/warehouse/brand/supplier/unit loaded."""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self.session_factory = session_factory or get_session_context

    async def get_item(self, item_id: int) -> Optional[Item]:
        async with self.session_factory() as db:
            stmt = _with_relations(select(Item).where(Item.id == item_id))
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

    async def list_by_relation(self, field: str, relation_id: int) -> List[Item]:
        column = getattr(Item, resolve_relation_field(field))
        async with self.session_factory() as db:
            stmt = _with_relations(select(Item).where(column == relation_id).order_by(Item.id))
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def iter_batches(self, batch_size: int) -> AsyncIterator[List[Item]]:
        """Page through every item ordered by id (keyset pagination)."""
        last_id = None
        while True:
            async with self.session_factory() as db:
                stmt = select(Item).order_by(Item.id).limit(batch_size)
                if last_id is not None:
                    stmt = stmt.where(Item.id > last_id)
                result = await db.execute(_with_relations(stmt))
                batch = list(result.scalars().all())
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            last_id = batch[-1].id
