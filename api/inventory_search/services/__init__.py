# inventory_search/services/__init__.py
"""
Index sync and search services for Inventory Search.
"""
from inventory_search.services.bulk_loader import BulkLoader, RebuildError
from inventory_search.services.index_schema import IndexSchemaManager
from inventory_search.services.item_source import ItemSource
from inventory_search.services.projector import ProjectionError, project_item
from inventory_search.services.search import ItemSearchService
from inventory_search.services.sync import IndexSyncService, SyncDispatcher, SyncResult, SyncStatus

__all__ = [
    "BulkLoader",
    "IndexSchemaManager",
    "IndexSyncService",
    "ItemSearchService",
    "ItemSource",
    "ProjectionError",
    "RebuildError",
    "SyncDispatcher",
    "SyncResult",
    "SyncStatus",
    "project_item",
]
