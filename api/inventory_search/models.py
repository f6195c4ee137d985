from __future__ import annotations
import math
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on", "y"}


def _blank_to_none(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class FilterSet(BaseModel):
    """
    Sparse search constraints. Every field is optional; absent means "not applied".

    Values are coerced here once: anything unparseable is dropped instead of
    rejected, so a bad query string never turns into an error response.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    category: Optional[str] = None
    warehouse: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    in_stock: bool = Field(default=False, alias="inStock")
    low_stock: bool = Field(default=False, alias="lowStock")

    @field_validator("category", "warehouse", "brand", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Optional[str]:
        v = _blank_to_none(v)
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, str)):
            return str(v)
        return None

    @field_validator("min_price", "max_price", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> Optional[float]:
        v = _blank_to_none(v)
        if v is None or isinstance(v, bool):
            return None
        try:
            f = float(str(v).replace(",", "."))
        except (TypeError, ValueError):
            return None
        return f if math.isfinite(f) else None

    @field_validator("in_stock", "low_stock", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        v = _blank_to_none(v)
        if v is None:
            return False
        return str(v).lower() in _TRUTHY


# ============================================================================
# Index document pieces
# ============================================================================

class RelationRef(BaseModel):
    id: str
    title: Optional[str] = None


# ============================================================================
# Search response
# ============================================================================

class FacetBucket(BaseModel):
    id: Optional[str] = None
    title: str
    count: int


class PriceRange(BaseModel):
    min: float = 0.0
    max: float = 0.0


class FacetSummary(BaseModel):
    categories: List[FacetBucket] = Field(default_factory=list)
    brands: List[FacetBucket] = Field(default_factory=list)
    priceRange: PriceRange = Field(default_factory=PriceRange)


class SearchHit(BaseModel):
    id: str
    title: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    quantity: Optional[int] = None
    sellingPrice: Optional[float] = None
    imageUrl: Optional[str] = None
    category: Optional[RelationRef] = None
    brand: Optional[RelationRef] = None
    warehouse: Optional[RelationRef] = None
    score: Optional[float] = None


class SearchResponse(BaseModel):
    success: bool = True
    total: int = 0
    results: List[SearchHit] = Field(default_factory=list)
    facets: FacetSummary = Field(default_factory=FacetSummary)
    message: Optional[str] = None


# ============================================================================
# Sync / rebuild
# ============================================================================

class SyncAccepted(BaseModel):
    accepted: bool = True
    operation: str
    target: str


class RebuildReport(BaseModel):
    indexed: int = 0
    failed: int = 0
    errors: List[dict] = Field(default_factory=list)
