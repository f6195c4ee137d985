# inventory_search/services/index_schema.py
"""
Index mapping and lifecycle (create / drop). Never touches documents.
"""
from __future__ import annotations
import logging
from typing import Any, Dict

from elasticsearch import AsyncElasticsearch

logger = logging.getLogger(__name__)


def _relation_mapping() -> Dict[str, Any]:
    return {
        "properties": {
            "id": {"type": "keyword"},
            "title": {"type": "keyword"},
        }
    }


# title is dual-mapped: analyzed for matching, keyword for sort/aggregations
ITEMS_MAPPINGS: Dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "sku": {"type": "keyword"},
        "barcode": {"type": "keyword"},

        "title": {
            "type": "text",
            "fields": {
                "keyword": {"type": "keyword", "ignore_above": 256},
            },
        },
        "description": {"type": "text"},

        "quantity": {"type": "integer"},
        "sellingPrice": {"type": "float"},
        "reOrderPoint": {"type": "integer"},
        "weight": {"type": "float"},
        "taxRate": {"type": "float"},
        "imageUrl": {"type": "keyword", "index": False},

        "category": _relation_mapping(),
        "warehouse": _relation_mapping(),
        "brand": _relation_mapping(),
        "supplier": _relation_mapping(),
        "unit": _relation_mapping(),

        "createdAt": {"type": "date"},
        "updatedAt": {"type": "date"},
    }
}


class IndexSchemaManager:
    """Creates and drops the items index. Both operations are idempotent."""

    def __init__(self, client: AsyncElasticsearch, index: str):
        self.client = client
        self.index = index

    async def exists(self) -> bool:
        return bool(await self.client.indices.exists(index=self.index))

    async def ensure_index(self) -> bool:
        """Create the index if absent. Returns True when it was created."""
        if await self.exists():
            logger.info(f"Index {self.index} already exists")
            return False
        await self.client.indices.create(index=self.index, mappings=ITEMS_MAPPINGS)
        logger.info(f"Index {self.index} created")
        return True

    async def drop_index(self) -> bool:
        """Delete the index if present. Returns True when it was deleted."""
        if not await self.exists():
            return False
        await self.client.indices.delete(index=self.index)
        logger.info(f"Deleted index {self.index}")
        return True

    async def refresh(self) -> None:
        await self.client.indices.refresh(index=self.index)
