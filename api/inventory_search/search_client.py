# inventory_search/search_client.py
"""
Elasticsearch client construction for Inventory Search.

One AsyncElasticsearch handle per process. It is created by the entry
point (FastAPI lifespan or the rebuild CLI), passed to every component,
and closed by the same entry point.
"""
from __future__ import annotations
from typing import Any, Dict

from elasticsearch import AsyncElasticsearch
from elasticsearch import ApiError, TransportError

from inventory_search.settings import Settings


def create_search_client(settings: Settings) -> AsyncElasticsearch:
    """Build the shared async client from settings."""
    kwargs: Dict[str, Any] = {
        "request_timeout": settings.ELASTICSEARCH_TIMEOUT,
    }
    if settings.ELASTICSEARCH_URL.startswith("https"):
        kwargs["verify_certs"] = settings.ELASTICSEARCH_VERIFY_CERTS
    if settings.ELASTICSEARCH_USERNAME and settings.ELASTICSEARCH_PASSWORD:
        kwargs["basic_auth"] = (settings.ELASTICSEARCH_USERNAME, settings.ELASTICSEARCH_PASSWORD)
    return AsyncElasticsearch(settings.ELASTICSEARCH_URL, **kwargs)


def response_body(resp: Any) -> Dict[str, Any]:
    """Plain dict behind an ObjectApiResponse (or an already-plain dict)."""
    body = getattr(resp, "body", resp)
    return body if isinstance(body, dict) else {}


async def check_search_health(client: AsyncElasticsearch) -> dict:
    """Check index store connectivity and return status."""
    try:
        health = response_body(await client.cluster.health())
        status = health.get("status", "unknown")
        return {
            "status": "unhealthy" if status == "red" else "healthy",
            "cluster": status,
        }
    except (ApiError, TransportError) as e:
        return {"status": "unhealthy", "cluster": "unreachable", "error": str(e)}
