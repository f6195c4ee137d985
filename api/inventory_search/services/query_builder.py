# inventory_search/services/query_builder.py
"""
Free-text term + FilterSet -> one Elasticsearch search request.

The returned dict holds keyword arguments for ``AsyncElasticsearch.search``.
Aggregations are always attached and run under the same query, so facets
describe the filtered result set and not the whole index.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from inventory_search.models import FilterSet

DEFAULT_PAGE_SIZE = 10
TEXT_FIELDS = ["title^2", "description"]
CODE_FIELDS = ("sku", "barcode")

LOW_STOCK_SCRIPT = (
    "doc['quantity'].size() != 0 && doc['reOrderPoint'].size() != 0"
    " && doc['quantity'].value <= doc['reOrderPoint'].value"
)


def _text_clause(term: str) -> Dict[str, Any]:
    # exact sku/barcode hits rank above title/description matches
    should: List[Dict[str, Any]] = [
        {"multi_match": {"query": term, "fields": TEXT_FIELDS, "type": "best_fields"}},
    ]
    for field in CODE_FIELDS:
        should.append({"term": {field: {"value": term, "boost": 5.0}}})
    return {"bool": {"should": should, "minimum_should_match": 1}}


def build_filters(filters: FilterSet) -> List[Dict[str, Any]]:
    """One clause per applied constraint; all are ANDed by the caller."""
    clauses: List[Dict[str, Any]] = []

    if filters.category:
        clauses.append({"term": {"category.id": filters.category}})
    if filters.warehouse:
        clauses.append({"term": {"warehouse.id": filters.warehouse}})
    if filters.brand:
        clauses.append({"term": {"brand.id": filters.brand}})

    # min > max is left as is: an empty range, not an error
    price: Dict[str, float] = {}
    if filters.min_price is not None:
        price["gte"] = filters.min_price
    if filters.max_price is not None:
        price["lte"] = filters.max_price
    if price:
        clauses.append({"range": {"sellingPrice": price}})

    if filters.in_stock:
        clauses.append({"range": {"quantity": {"gt": 0}}})
    if filters.low_stock:
        clauses.append({"script": {"script": {"source": LOW_STOCK_SCRIPT, "lang": "painless"}}})

    return clauses


def build_aggregations(facet_size: int) -> Dict[str, Any]:
    def relation_terms(name: str) -> Dict[str, Any]:
        return {
            "terms": {"field": f"{name}.id", "size": facet_size},
            "aggs": {"title": {"terms": {"field": f"{name}.title", "size": 1}}},
        }

    return {
        "categories": relation_terms("category"),
        "brands": relation_terms("brand"),
        "price_min": {"min": {"field": "sellingPrice"}},
        "price_max": {"max": {"field": "sellingPrice"}},
    }


def build_query(
    term: Optional[str],
    filters: Optional[FilterSet] = None,
    page: int = 0,
    size: int = DEFAULT_PAGE_SIZE,
    facet_size: int = 20,
) -> Dict[str, Any]:
    """
    Build the search request.

    An empty term matches every document (filters still apply). With a
    term, hits are ranked by relevance; without one, by most recently
    updated, ties broken by id so paging stays deterministic.
    """
    term = (term or "").strip()
    filters = filters or FilterSet()
    size = max(1, size)
    page = max(0, page)

    query: Dict[str, Any] = {
        "bool": {
            "must": [_text_clause(term) if term else {"match_all": {}}],
            "filter": build_filters(filters),
        }
    }

    if term:
        sort: List[Any] = [{"_score": {"order": "desc"}}, {"id": {"order": "asc"}}]
    else:
        sort = [{"updatedAt": {"order": "desc", "missing": "_last"}}, {"id": {"order": "asc"}}]

    return {
        "query": query,
        "from_": page * size,
        "size": size,
        "sort": sort,
        "aggs": build_aggregations(facet_size),
        "track_total_hits": True,
    }
