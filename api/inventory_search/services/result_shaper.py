# inventory_search/services/result_shaper.py
"""
Raw Elasticsearch hits/aggregations -> public result list + facet summary.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from inventory_search.models import (
    FacetBucket, FacetSummary, PriceRange, SearchHit, SearchResponse,
)


def _hit(raw: Dict[str, Any]) -> SearchHit:
    src = dict(raw.get("_source") or {})
    src.setdefault("id", raw.get("_id"))
    return SearchHit.model_validate({**src, "score": raw.get("_score")})


def _buckets(agg: Optional[Dict[str, Any]]) -> List[FacetBucket]:
    out: List[FacetBucket] = []
    for b in (agg or {}).get("buckets", []):
        titles = (b.get("title") or {}).get("buckets") or []
        key = b.get("key")
        out.append(FacetBucket(
            id=str(key) if key is not None else None,
            title=str(titles[0]["key"]) if titles else str(key),
            count=int(b.get("doc_count", 0)),
        ))
    return out


def _metric(agg: Optional[Dict[str, Any]]) -> float:
    # min/max over zero documents comes back as null
    value = (agg or {}).get("value")
    return float(value) if value is not None else 0.0


def shape(
    raw_hits: List[Dict[str, Any]],
    raw_aggregations: Optional[Dict[str, Any]],
) -> Tuple[List[SearchHit], FacetSummary]:
    aggs = raw_aggregations or {}
    facets = FacetSummary(
        categories=_buckets(aggs.get("categories")),
        brands=_buckets(aggs.get("brands")),
        priceRange=PriceRange(min=_metric(aggs.get("price_min")), max=_metric(aggs.get("price_max"))),
    )
    return [_hit(h) for h in raw_hits or []], facets


def shape_response(body: Dict[str, Any]) -> SearchResponse:
    hits = body.get("hits") or {}
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value", 0)
    results, facets = shape(hits.get("hits") or [], body.get("aggregations"))
    return SearchResponse(
        success=True,
        total=int(total or 0),
        results=results,
        facets=facets,
    )
