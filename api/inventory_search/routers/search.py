# inventory_search/routers/search.py
"""
Search API + index sync triggers.

GET /search is consumed by the search box; the /search/index/* endpoints
are called by the inventory backend after it commits a write. Sync work is
handed to the dispatcher and the request returns 202 immediately.
"""
from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from inventory_search.models import FilterSet, SearchResponse, SyncAccepted
from inventory_search.services.item_source import resolve_relation_field
from inventory_search.services.search import ItemSearchService
from inventory_search.services.sync import IndexSyncService, SyncDispatcher

router = APIRouter(prefix="/search", tags=["Search"])


# ============================================================================
# Dependencies (services live on app.state, built in the lifespan)
# ============================================================================

def get_search_service(request: Request) -> ItemSearchService:
    return request.app.state.search_service


def get_sync_service(request: Request) -> IndexSyncService:
    return request.app.state.sync_service


def get_dispatcher(request: Request) -> SyncDispatcher:
    return request.app.state.dispatcher


def _as_int(raw: Optional[str], default: Optional[int]) -> Optional[int]:
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=SearchResponse)
async def search_items(
    q: str = Query("", description="Free-text term; empty matches everything"),
    size: Optional[str] = Query(None, description="Result size cap"),
    page: Optional[str] = Query(None, description="0-based page"),
    category: Optional[str] = Query(None),
    warehouse: Optional[str] = Query(None),
    brand: Optional[str] = Query(None),
    minPrice: Optional[str] = Query(None),
    maxPrice: Optional[str] = Query(None),
    inStock: Optional[str] = Query(None),
    lowStock: Optional[str] = Query(None),
    service: ItemSearchService = Depends(get_search_service),
):
    """
    Faceted item search.

    Filter values that do not parse are ignored rather than rejected.
    """
    filters = FilterSet(
        category=category,
        warehouse=warehouse,
        brand=brand,
        minPrice=minPrice,
        maxPrice=maxPrice,
        inStock=inStock,
        lowStock=lowStock,
    )
    return await service.search(
        q,
        filters,
        size=_as_int(size, None),
        page=max(0, _as_int(page, 0)),
    )


@router.post("/index/items/{item_id}", response_model=SyncAccepted, status_code=status.HTTP_202_ACCEPTED)
async def sync_item(
    item_id: int,
    sync: IndexSyncService = Depends(get_sync_service),
    dispatcher: SyncDispatcher = Depends(get_dispatcher),
):
    dispatcher.submit(sync.upsert_one(item_id), name=f"upsert:{item_id}")
    return SyncAccepted(operation="upsert", target=str(item_id))


@router.delete("/index/items/{item_id}", response_model=SyncAccepted, status_code=status.HTTP_202_ACCEPTED)
async def unsync_item(
    item_id: int,
    sync: IndexSyncService = Depends(get_sync_service),
    dispatcher: SyncDispatcher = Depends(get_dispatcher),
):
    dispatcher.submit(sync.delete_one(item_id), name=f"delete:{item_id}")
    return SyncAccepted(operation="delete", target=str(item_id))


@router.post(
    "/index/relations/{relation_field}/{relation_id}",
    response_model=SyncAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
async def reindex_relation(
    relation_field: str,
    relation_id: int,
    sync: IndexSyncService = Depends(get_sync_service),
    dispatcher: SyncDispatcher = Depends(get_dispatcher),
):
    """Cascade reindex after a category/warehouse/brand/supplier/unit edit."""
    try:
        resolve_relation_field(relation_field)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))
    dispatcher.submit(
        sync.reindex_by_relation(relation_field, relation_id),
        name=f"reindex:{relation_field}:{relation_id}",
    )
    return SyncAccepted(operation="reindex", target=f"{relation_field}:{relation_id}")
