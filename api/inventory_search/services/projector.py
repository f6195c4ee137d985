# inventory_search/services/projector.py
"""
Item -> index document projection.

Pure mapping, no I/O. The item must arrive with its relations already
loaded. Missing relations become ``None``; scalar values are coerced to
the types declared in the index mapping so a mismatch surfaces here and
not as a rejected write at the index store.
"""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from inventory_search.db_models import RELATION_NAMES


class ProjectionError(ValueError):
    """Raised when a scalar cannot be coerced to its index type."""

    def __init__(self, item_id: Any, field: str, value: Any):
        self.item_id = item_id
        self.field = field
        self.value = value
        super().__init__(f"item {item_id}: field '{field}' has invalid value {value!r}")


# ============================================================================
# Coercion helpers
# ============================================================================

def _as_float(item_id: Any, field: str, value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ProjectionError(item_id, field, value)
    try:
        f = float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        raise ProjectionError(item_id, field, value) from None
    if f != f or f in (float("inf"), float("-inf")):
        raise ProjectionError(item_id, field, value)
    return f


def _as_int(item_id: Any, field: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ProjectionError(item_id, field, value)
    if isinstance(value, int):
        return value
    f = _as_float(item_id, field, value)
    if f is None or not f.is_integer():
        raise ProjectionError(item_id, field, value)
    return int(f)


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_timestamp(item_id: Any, field: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).isoformat()
        except ValueError:
            raise ProjectionError(item_id, field, value) from None
    raise ProjectionError(item_id, field, value)


def _relation(entity: Any) -> Optional[Dict[str, Any]]:
    if entity is None:
        return None
    return {"id": _as_str(entity.id), "title": getattr(entity, "title", None)}


# ============================================================================
# Projection
# ============================================================================

def project_item(item: Any) -> Dict[str, Any]:
    """
    Map an item (with resolved relations) to its index document.

    The document id is the item id. Every relation key is present in the
    output, ``None`` when the foreign key is unset.
    """
    item_id = item.id
    doc: Dict[str, Any] = {
        "id": _as_str(item_id),
        "title": item.title,
        "description": item.description,
        "sku": _as_str(item.sku),
        "barcode": _as_str(item.barcode),
        "quantity": _as_int(item_id, "quantity", item.quantity),
        "sellingPrice": _as_float(item_id, "sellingPrice", item.selling_price),
        "reOrderPoint": _as_int(item_id, "reOrderPoint", item.re_order_point),
        "weight": _as_float(item_id, "weight", item.weight),
        "taxRate": _as_float(item_id, "taxRate", item.tax_rate),
        "imageUrl": item.image_url,
    }
    for name in RELATION_NAMES:
        doc[name] = _relation(getattr(item, name, None))
    doc["createdAt"] = _as_timestamp(item_id, "createdAt", item.created_at)
    doc["updatedAt"] = _as_timestamp(item_id, "updatedAt", item.updated_at)
    return doc
