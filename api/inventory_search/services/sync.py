# inventory_search/services/sync.py
"""
Incremental index synchronization.

Three entry points, each isolated to its own unit of work:

- ``upsert_one``: fetch item -> project -> write (replace) by item id
- ``delete_one``: remove document by id; "not found" is success
- ``reindex_by_relation``: re-project every item pointing at a lookup row

None of them raise on store failures. The caller is usually a relational
write that must not be rolled back or blocked by the index, so failures
are logged and returned as a ``SyncResult`` (also published to listeners).
The index heals on the next successful sync or full rebuild.
"""
from __future__ import annotations
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set

from elasticsearch import AsyncElasticsearch

from inventory_search.search_client import response_body
from inventory_search.services.item_source import ItemSource, resolve_relation_field
from inventory_search.services.projector import ProjectionError, project_item

logger = logging.getLogger(__name__)


class SyncStatus(str, enum.Enum):
    indexed = "indexed"
    deleted = "deleted"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True)
class SyncResult:
    operation: str
    item_id: str
    status: SyncStatus
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != SyncStatus.failed


SyncListener = Callable[[SyncResult], None]


class IndexSyncService:
    """Keeps single documents in step with their source items."""

    def __init__(
        self,
        client: AsyncElasticsearch,
        index: str,
        source: Optional[ItemSource] = None,
        listeners: Optional[Iterable[SyncListener]] = None,
        cascade_concurrency: int = 1,
        refresh: bool = False,
    ):
        self.client = client
        self.index = index
        self.source = source or ItemSource()
        self.listeners: List[SyncListener] = list(listeners or [])
        self.cascade_concurrency = max(1, cascade_concurrency)
        self.refresh = refresh

    def _publish(self, result: SyncResult) -> SyncResult:
        for listener in self.listeners:
            try:
                listener(result)
            except Exception:
                logger.exception(f"Sync listener {listener!r} failed")
        return result

    # =========================================================================
    # Upsert
    # =========================================================================

    async def upsert_one(self, item_id: int) -> SyncResult:
        try:
            item = await self.source.get_item(item_id)
        except Exception as e:
            logger.error(f"Error loading item {item_id} for indexing: {e}")
            return self._publish(SyncResult("upsert", str(item_id), SyncStatus.failed, str(e)))

        if item is None:
            logger.info(f"Item {item_id} not found, skipping index")
            return self._publish(SyncResult("upsert", str(item_id), SyncStatus.skipped, "item not found"))

        return await self._write(item, "upsert")

    async def _write(self, item: Any, operation: str) -> SyncResult:
        try:
            doc = project_item(item)
        except ProjectionError as e:
            logger.error(f"Cannot project item {item.id}: {e}")
            return self._publish(SyncResult(operation, str(item.id), SyncStatus.failed, str(e)))

        try:
            await self.client.index(
                index=self.index,
                id=doc["id"],
                document=doc,
                refresh=self.refresh,
            )
        except Exception as e:
            logger.error(f"Error indexing item {doc['id']}: {e}")
            return self._publish(SyncResult(operation, doc["id"], SyncStatus.failed, str(e)))

        logger.info(f"Indexed item {doc['id']}: {doc['title']}")
        return self._publish(SyncResult(operation, doc["id"], SyncStatus.indexed))

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete_one(self, item_id: int) -> SyncResult:
        doc_id = str(item_id)
        try:
            resp = await self.client.options(ignore_status=404).delete(
                index=self.index,
                id=doc_id,
                refresh=self.refresh,
            )
        except Exception as e:
            logger.error(f"Error deleting item {doc_id} from index: {e}")
            return self._publish(SyncResult("delete", doc_id, SyncStatus.failed, str(e)))

        if response_body(resp).get("result") == "deleted":
            logger.info(f"Deleted item from index: {doc_id}")
            return self._publish(SyncResult("delete", doc_id, SyncStatus.deleted))

        logger.info(f"Item {doc_id} not in index, skipping delete")
        return self._publish(SyncResult("delete", doc_id, SyncStatus.skipped, "not in index"))

    # =========================================================================
    # Relation cascade
    # =========================================================================

    async def reindex_by_relation(self, relation_field: str, relation_id: int) -> int:
        """
        Re-project every item whose ``relation_field`` equals ``relation_id``.

        Items are written one at a time unless ``cascade_concurrency`` > 1.
        Returns the number of items processed; per-item failures are only
        logged and published.
        """
        resolve_relation_field(relation_field)
        try:
            items = await self.source.list_by_relation(relation_field, relation_id)
        except Exception as e:
            logger.error(f"Error loading items for {relation_field}:{relation_id}: {e}")
            return 0

        logger.info(f"Reindexing {len(items)} items for {relation_field}:{relation_id}")

        if self.cascade_concurrency == 1:
            for item in items:
                await self._write(item, "reindex")
        else:
            gate = asyncio.Semaphore(self.cascade_concurrency)

            async def _bounded(item: Any) -> SyncResult:
                async with gate:
                    return await self._write(item, "reindex")

            await asyncio.gather(*(_bounded(item) for item in items))

        logger.info(f"Reindexed {len(items)} items")
        return len(items)


class SyncDispatcher:
    """
    Fire-and-forget submission of sync work.

    Submitted operations run concurrently with no ordering between them.
    The dispatcher only holds references so tasks are not garbage
    collected mid-flight, and lets shutdown wait for them via ``drain``.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background sync task {task.get_name()} crashed", exc_info=exc)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
