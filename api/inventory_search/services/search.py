# inventory_search/services/search.py
"""
Item search: build request -> query index -> shape response.

Store failures and unreadable stored documents never escape; they become ``success=False`` with empty
results and facets.
"""
from __future__ import annotations
import logging
from typing import Optional

from elasticsearch import AsyncElasticsearch

from inventory_search.models import FilterSet, SearchResponse
from inventory_search.search_client import response_body
from inventory_search.services.query_builder import DEFAULT_PAGE_SIZE, build_query
from inventory_search.services.result_shaper import shape_response

logger = logging.getLogger(__name__)


class ItemSearchService:
    def __init__(
        self,
        client: AsyncElasticsearch,
        index: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = 100,
        facet_size: int = 20,
    ):
        self.client = client
        self.index = index
        self.page_size = page_size
        self.max_page_size = max_page_size
        self.facet_size = facet_size

    def _clamp_size(self, size: Optional[int]) -> int:
        if not size or size < 1:
            return self.page_size
        return min(size, self.max_page_size)

    async def search(
        self,
        term: Optional[str] = None,
        filters: Optional[FilterSet] = None,
        size: Optional[int] = None,
        page: int = 0,
    ) -> SearchResponse:
        request = build_query(
            term,
            filters,
            page=page,
            size=self._clamp_size(size),
            facet_size=self.facet_size,
        )
        try:
            resp = await self.client.search(index=self.index, **request)
            return shape_response(response_body(resp))
        except Exception as e:
            logger.error(f"Search failed for term={term!r}: {e}")
            return SearchResponse(success=False, message="Search failed")
