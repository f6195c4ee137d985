# inventory_search/main.py
# Inventory Search - Elasticsearch index over the inventory items tables
from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

from elasticsearch import AsyncElasticsearch, ApiError, TransportError
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inventory_search.settings import settings
from inventory_search.database import init_db, close_db, check_db_health
from inventory_search.logging_setup import setup_logging
from inventory_search.search_client import create_search_client, check_search_health
from inventory_search.routers.search import router as search_router
from inventory_search.services.index_schema import IndexSchemaManager
from inventory_search.services.item_source import ItemSource
from inventory_search.services.search import ItemSearchService
from inventory_search.services.sync import IndexSyncService, SyncDispatcher

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(
    search_client: Optional[AsyncElasticsearch] = None,
    item_source: Optional[ItemSource] = None,
    manage_db: bool = True,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the API. The index client and DB engine are created in the
    lifespan unless injected, and closed on shutdown either way.
    """
    if configure_logging:
        setup_logging(settings)

    # ---------------------------------------------------------
    # Lifespan: DB + index client init/cleanup
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_db:
            await init_db()
        client = search_client or create_search_client(settings)
        source = item_source or ItemSource()

        # sync writes must never auto-create the index with a dynamic mapping
        try:
            await IndexSchemaManager(client, settings.ELASTICSEARCH_INDEX).ensure_index()
        except (ApiError, TransportError) as e:
            logger.error(f"Could not ensure index {settings.ELASTICSEARCH_INDEX}: {e}")

        app.state.search_client = client
        app.state.dispatcher = SyncDispatcher()
        app.state.search_service = ItemSearchService(
            client,
            settings.ELASTICSEARCH_INDEX,
            page_size=settings.SEARCH_PAGE_SIZE,
            max_page_size=settings.SEARCH_MAX_PAGE_SIZE,
            facet_size=settings.SEARCH_FACET_SIZE,
        )
        app.state.sync_service = IndexSyncService(
            client,
            settings.ELASTICSEARCH_INDEX,
            source=source,
            cascade_concurrency=settings.CASCADE_CONCURRENCY,
        )
        logger.info(f"Inventory Search started (index={settings.ELASTICSEARCH_INDEX})")
        yield
        # let in-flight sync work finish before the client goes away
        await app.state.dispatcher.drain()
        await client.close()
        if manage_db:
            await close_db()
        logger.info("Inventory Search stopped")

    app = FastAPI(
        title="Inventory Search API",
        version=VERSION,
        description="Faceted item search backed by an Elasticsearch projection of the inventory tables",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(search_router)

    @app.get("/health")
    async def health():
        """Health check with database and index status."""
        result = {
            "status": "ok",
            "version": VERSION,
            "index": settings.ELASTICSEARCH_INDEX,
        }
        if manage_db:
            db_health = await check_db_health()
            result["database"] = db_health
            if db_health.get("status") != "healthy":
                result["status"] = "degraded"
        es_health = await check_search_health(app.state.search_client)
        result["search"] = es_health
        if es_health.get("status") != "healthy":
            result["status"] = "degraded"
        return result

    return app


app = create_app()
