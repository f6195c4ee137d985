# inventory_search/services/bulk_loader.py
"""
Full-corpus rebuild of the items index.

Steps, each independently failable:
    1. ensure index (optionally drop first: "clean" mode)
    2. read every item with relations, in keyset pages of ``chunk_size``
    3. project each page and submit it as one bulk call
    4. inspect bulk responses for item-level rejections

Fatal (raise ``RebuildError``): index creation, relational read, or a bulk
call that fails as a whole (e.g. cluster unreachable).
Non-fatal (counted in the report): documents that fail projection or are
rejected individually inside a bulk response. Only the first few errors are
kept as samples so a systemic failure does not flood the log.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from elasticsearch import AsyncElasticsearch

from inventory_search.models import RebuildReport
from inventory_search.search_client import response_body
from inventory_search.services.index_schema import IndexSchemaManager
from inventory_search.services.item_source import ItemSource
from inventory_search.services.projector import ProjectionError, project_item

logger = logging.getLogger(__name__)


class RebuildError(Exception):
    """A rebuild step failed as a whole; the run must abort."""

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(f"{step}: {message}")


class BulkLoader:
    def __init__(
        self,
        client: AsyncElasticsearch,
        index: str,
        source: Optional[ItemSource] = None,
        chunk_size: int = 500,
        error_samples: int = 3,
    ):
        self.client = client
        self.index = index
        self.source = source or ItemSource()
        self.chunk_size = max(1, chunk_size)
        self.error_samples = max(0, error_samples)
        self.schema = IndexSchemaManager(client, index)

    async def rebuild_all(self, clean: bool = False, refresh: bool = True) -> RebuildReport:
        try:
            if clean:
                await self.schema.drop_index()
            await self.schema.ensure_index()
        except Exception as e:
            raise RebuildError("create_index", str(e)) from e

        report = RebuildReport()
        fetched = 0
        batches = self.source.iter_batches(self.chunk_size)
        while True:
            try:
                batch = await batches.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                raise RebuildError("fetch_items", str(e)) from e
            fetched += len(batch)
            await self._load_batch(batch, report)

        if fetched == 0:
            logger.info("No items to index")
            return report

        if refresh:
            try:
                await self.schema.refresh()
            except Exception as e:
                logger.warning(f"Index refresh after bulk load failed: {e}")

        if report.failed:
            logger.error(f"Bulk indexing had errors: failed to index {report.failed} of {fetched} items")
            for i, err in enumerate(report.errors, start=1):
                logger.error(f"Error {i}: {err}")
        else:
            logger.info(f"Successfully indexed {report.indexed} items")
        return report

    def _record_failure(self, report: RebuildReport, error: Dict[str, Any]) -> None:
        report.failed += 1
        if len(report.errors) < self.error_samples:
            report.errors.append(error)

    async def _load_batch(self, batch: List[Any], report: RebuildReport) -> None:
        operations: List[Dict[str, Any]] = []
        for item in batch:
            try:
                doc = project_item(item)
            except ProjectionError as e:
                self._record_failure(report, {"id": str(item.id), "type": "projection_error", "reason": str(e)})
                continue
            operations.append({"index": {"_index": self.index, "_id": doc["id"]}})
            operations.append(doc)

        if not operations:
            return

        try:
            resp = response_body(await self.client.bulk(operations=operations))
        except Exception as e:
            raise RebuildError("bulk_index", str(e)) from e

        for entry in resp.get("items", []):
            action = entry.get("index") or {}
            if action.get("error"):
                self._record_failure(report, {
                    "id": action.get("_id"),
                    "status": action.get("status"),
                    "error": action["error"],
                })
            else:
                report.indexed += 1
