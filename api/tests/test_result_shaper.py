"""
Tests for shaping raw search responses.
"""
from inventory_search.services.result_shaper import shape, shape_response


RAW = {
    "hits": {
        "total": {"value": 2, "relation": "eq"},
        "hits": [
            {"_id": "1", "_score": 2.5, "_source": {
                "id": "1", "title": "Claw Hammer", "sku": "A-100", "quantity": 5, "sellingPrice": 10.0,
                "imageUrl": "https://img/1.png", "category": {"id": "1", "title": "Tools"},
                "brand": None, "warehouse": {"id": "1", "title": "Main"}, "description": "ignored",
            }},
            {"_id": "2", "_score": 1.0, "_source": {"title": "Drill", "sku": "B-200", "quantity": 0}},
        ],
    },
    "aggregations": {
        "categories": {"buckets": [
            {"key": "1", "doc_count": 2, "title": {"buckets": [{"key": "Tools", "doc_count": 2}]}},
        ]},
        "brands": {"buckets": [
            {"key": "1", "doc_count": 1, "title": {"buckets": [{"key": "Acme", "doc_count": 1}]}},
            {"key": "2", "doc_count": 1, "title": {"buckets": []}},
        ]},
        "price_min": {"value": 10.0},
        "price_max": {"value": 20.0},
    },
}


def test_shape_response_maps_hits_and_facets():
    resp = shape_response(RAW)

    assert resp.success is True
    assert resp.total == 2
    first, second = resp.results
    assert first.id == "1"
    assert first.score == 2.5
    assert first.category.title == "Tools"
    assert first.brand is None
    assert first.imageUrl == "https://img/1.png"
    assert second.id == "2"  # falls back to _id

    assert [(b.id, b.title, b.count) for b in resp.facets.categories] == [("1", "Tools", 2)]
    assert [(b.id, b.title) for b in resp.facets.brands] == [("1", "Acme"), ("2", "2")]
    assert (resp.facets.priceRange.min, resp.facets.priceRange.max) == (10.0, 20.0)


def test_empty_aggregations_give_empty_facets():
    results, facets = shape([], {
        "categories": {"buckets": []},
        "brands": {"buckets": []},
        "price_min": {"value": None},
        "price_max": {"value": None},
    })
    assert results == []
    assert facets.categories == [] and facets.brands == []
    assert (facets.priceRange.min, facets.priceRange.max) == (0.0, 0.0)


def test_missing_aggregations_tolerated():
    resp = shape_response({"hits": {"total": 0, "hits": []}})
    assert resp.total == 0
    assert resp.facets.priceRange.min == 0.0
