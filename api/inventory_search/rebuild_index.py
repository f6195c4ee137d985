# inventory_search/rebuild_index.py
"""
Rebuild the items index from the relational store.

    inventory-search-rebuild            # create index if missing, load all items
    inventory-search-rebuild --clean    # drop + recreate first

Steps: connectivity check -> optional drop -> ensure index -> bulk load ->
search smoke test. Exits 1 if the index store is unreachable or a fatal
rebuild step fails. Partially rejected documents are logged but do not
fail the run.
"""
from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from elasticsearch import AsyncElasticsearch

from inventory_search.settings import settings
from inventory_search.database import close_db
from inventory_search.logging_setup import setup_logging
from inventory_search.search_client import check_search_health, create_search_client, response_body
from inventory_search.services.bulk_loader import BulkLoader, RebuildError
from inventory_search.services.item_source import ItemSource

logger = logging.getLogger("inventory_search.rebuild")


async def smoke_test(client: AsyncElasticsearch, index: str) -> bool:
    try:
        body = response_body(await client.search(index=index, query={"match_all": {}}, size=3))
    except Exception as e:
        logger.error(f"Search test failed: {e}")
        return False
    hits = body.get("hits") or {}
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value", 0)
    logger.info(f"Search test successful! Found {total or 0} total items")
    for i, hit in enumerate(hits.get("hits") or [], start=1):
        src = hit.get("_source") or {}
        logger.info(f"  {i}. {src.get('title')} (SKU: {src.get('sku')})")
    return True


async def run(
    clean: bool = False,
    chunk_size: Optional[int] = None,
    client: Optional[AsyncElasticsearch] = None,
    source: Optional[ItemSource] = None,
) -> int:
    """Run the rebuild; returns the process exit code."""
    own_client = client is None
    client = client or create_search_client(settings)
    index = settings.ELASTICSEARCH_INDEX
    try:
        logger.info("Step 1: Testing connection...")
        health = await check_search_health(client)
        if health["status"] != "healthy":
            logger.error(f"Setup failed: cannot connect to Elasticsearch at {settings.ELASTICSEARCH_URL} ({health.get('error', health.get('cluster'))})")
            return 1
        logger.info(f"Elasticsearch connected: {health['cluster']}")

        loader = BulkLoader(
            client,
            index,
            source=source,
            chunk_size=chunk_size or settings.BULK_CHUNK_SIZE,
            error_samples=settings.BULK_ERROR_SAMPLES,
        )
        logger.info(f"Step 2-4: {'Dropping, creating' if clean else 'Creating'} index {index} and indexing items...")
        try:
            report = await loader.rebuild_all(clean=clean)
        except RebuildError as e:
            logger.error(f"Setup failed at step {e.step}: {e}")
            return 1
        logger.info(f"Indexed {report.indexed} items, {report.failed} failed")

        logger.info("Step 5: Running search test...")
        await smoke_test(client, index)
        logger.info("Elasticsearch setup complete!")
        return 0
    finally:
        if own_client:
            await client.close()
        if source is None:
            await close_db()


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Rebuild the inventory items search index")
    ap.add_argument("-c", "--clean", action="store_true", help="Drop and recreate the index before loading")
    ap.add_argument("--chunk-size", type=int, default=None, help="Items per bulk request")
    args = ap.parse_args(argv)

    setup_logging(settings, console=True)
    return asyncio.run(run(clean=args.clean, chunk_size=args.chunk_size))


if __name__ == "__main__":
    sys.exit(main())
