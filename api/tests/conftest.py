"""
Pytest fixtures for Inventory Search tests.

Provides an in-memory SQLite item store, seeded catalogue and a fake
Elasticsearch client.
"""
import os
import tempfile

# must be set before inventory_search.settings is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="inventory-search-logs-"))
os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")

import pytest
from decimal import Decimal
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_search.database import Base
from inventory_search.db_models import Item, Category, Brand, Warehouse, Supplier, Unit
from inventory_search.services.item_source import ItemSource

from tests.fakes import FakeSearchClient

INDEX = "test_inventory_items"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def source(session_factory):
    return ItemSource(session_factory)


@pytest.fixture
def es():
    return FakeSearchClient()


@pytest.fixture
async def catalogue(session_factory):
    """
    Tools: A (10.00, qty 5, Acme), B (20.00, qty 0, Volt)
    Electronics: C (5.00, qty 1, Acme, no warehouse)
    """
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    async with session_factory() as db:
        tools = Category(id=1, title="Tools")
        electronics = Category(id=2, title="Electronics")
        acme = Brand(id=1, title="Acme")
        volt = Brand(id=2, title="Volt")
        main = Warehouse(id=1, title="Main")
        supplier = Supplier(id=1, title="Nordic Supply")
        pcs = Unit(id=1, title="Piece", abbreviation="pcs")
        db.add_all([tools, electronics, acme, volt, main, supplier, pcs])
        db.add_all([
            Item(id=1, sku="A-100", barcode="4006381333931", title="Claw Hammer",
                 description="Steel claw hammer", quantity=5, selling_price=Decimal("10.00"),
                 re_order_point=2, weight=Decimal("0.650"), tax_rate=Decimal("20.00"),
                 category_id=1, warehouse_id=1, brand_id=1, supplier_id=1, unit_id=1,
                 created_at=ts, updated_at=ts.replace(day=3)),
            Item(id=2, sku="B-200", title="Cordless Drill", description="18V drill driver",
                 quantity=0, selling_price=Decimal("20.00"), re_order_point=3,
                 category_id=1, warehouse_id=1, brand_id=2, unit_id=1,
                 created_at=ts, updated_at=ts.replace(day=2)),
            Item(id=3, sku="C-300", title="USB Cable", description="Braided usb-c cable",
                 quantity=1, selling_price=Decimal("5.00"), re_order_point=1,
                 category_id=2, brand_id=1,
                 created_at=ts, updated_at=ts.replace(day=1)),
        ])
        await db.commit()
