"""
Tests for incremental sync: upsert, delete, relation cascade, dispatcher.
"""
import asyncio

import pytest
from sqlalchemy import update

from inventory_search.db_models import Brand
from inventory_search.services.sync import IndexSyncService, SyncDispatcher, SyncStatus
from tests.conftest import INDEX
from tests.fakes import FakeItemSource, make_item


@pytest.fixture
def events():
    return []


@pytest.fixture
def sync(es, source, events):
    return IndexSyncService(es, INDEX, source=source, listeners=[events.append])


# ============================================================================
# upsert_one
# ============================================================================

async def test_upsert_writes_document_keyed_by_item_id(sync, es, catalogue, events):
    result = await sync.upsert_one(1)

    assert result.status == SyncStatus.indexed
    doc = es.docs(INDEX)["1"]
    assert doc["id"] == "1"
    assert doc["title"] == "Claw Hammer"
    assert doc["brand"] == {"id": "1", "title": "Acme"}
    assert events == [result]


async def test_upsert_twice_is_idempotent(sync, es, catalogue):
    await sync.upsert_one(2)
    first = dict(es.docs(INDEX)["2"])
    await sync.upsert_one(2)

    assert es.docs(INDEX)["2"] == first
    assert len(es.docs(INDEX)) == 1


async def test_upsert_missing_item_is_noop(sync, es, catalogue):
    result = await sync.upsert_one(999)

    assert result.status == SyncStatus.skipped
    assert result.ok
    assert es.docs(INDEX) == {}


async def test_upsert_store_failure_is_reported_not_raised(sync, es, catalogue, events):
    es.fail_index = True

    result = await sync.upsert_one(1)

    assert result.status == SyncStatus.failed
    assert result.error
    assert events[-1].status == SyncStatus.failed


async def test_upsert_source_failure_is_reported_not_raised(es):
    sync = IndexSyncService(es, INDEX, source=FakeItemSource(fail=RuntimeError("db down")))
    result = await sync.upsert_one(1)
    assert result.status == SyncStatus.failed
    assert result.error == "db down"


async def test_upsert_projection_failure_is_reported(es):
    sync = IndexSyncService(es, INDEX, source=FakeItemSource([make_item(id=5, selling_price="n/a")]))
    result = await sync.upsert_one(5)
    assert result.status == SyncStatus.failed
    assert "sellingPrice" in result.error
    assert es.docs(INDEX) == {}


async def test_broken_listener_does_not_break_sync(es, source, catalogue):
    def explode(_result):
        raise RuntimeError("listener bug")

    sync = IndexSyncService(es, INDEX, source=source, listeners=[explode])
    result = await sync.upsert_one(1)
    assert result.status == SyncStatus.indexed


# ============================================================================
# delete_one
# ============================================================================

async def test_delete_removes_document(sync, es, catalogue):
    await sync.upsert_one(1)
    result = await sync.delete_one(1)

    assert result.status == SyncStatus.deleted
    assert "1" not in es.docs(INDEX)


async def test_delete_is_idempotent(sync, es, catalogue):
    await sync.upsert_one(1)
    first = await sync.delete_one(1)
    second = await sync.delete_one(1)

    assert first.status == SyncStatus.deleted
    assert second.status == SyncStatus.skipped
    assert second.ok


async def test_delete_never_indexed_id(sync):
    result = await sync.delete_one(424242)
    assert result.status == SyncStatus.skipped


async def test_delete_connectivity_failure_is_loud(sync, es, events):
    es.down = True
    result = await sync.delete_one(1)

    assert result.status == SyncStatus.failed
    assert not result.ok
    assert events[-1] is result


# ============================================================================
# reindex_by_relation
# ============================================================================

async def test_cascade_updates_only_items_of_that_brand(sync, es, catalogue, session_factory):
    for item_id in (1, 2, 3):
        await sync.upsert_one(item_id)
    untouched = dict(es.docs(INDEX)["2"])

    async with session_factory() as db:
        await db.execute(update(Brand).where(Brand.id == 1).values(title="Acme Pro"))
        await db.commit()

    count = await sync.reindex_by_relation("brandId", 1)

    assert count == 2
    docs = es.docs(INDEX)
    assert docs["1"]["brand"]["title"] == "Acme Pro"
    assert docs["3"]["brand"]["title"] == "Acme Pro"
    assert docs["2"] == untouched


async def test_cascade_accepts_column_names(sync, es, catalogue):
    assert await sync.reindex_by_relation("category_id", 1) == 2
    assert set(es.docs(INDEX)) == {"1", "2"}


async def test_cascade_unknown_field_is_caller_error(sync):
    with pytest.raises(ValueError):
        await sync.reindex_by_relation("colourId", 1)


async def test_cascade_isolates_item_failures(es, events):
    items = [
        make_item(id=1, brand_id=7),
        make_item(id=2, brand_id=7, quantity="lots"),
        make_item(id=3, brand_id=7),
        make_item(id=4, brand_id=8),
    ]
    sync = IndexSyncService(es, INDEX, source=FakeItemSource(items), listeners=[events.append])

    count = await sync.reindex_by_relation("brandId", 7)

    assert count == 3
    assert set(es.docs(INDEX)) == {"1", "3"}
    assert [e.status for e in events] == [SyncStatus.indexed, SyncStatus.failed, SyncStatus.indexed]


async def test_cascade_runs_sequentially_by_default(es):
    in_flight = 0
    peak = 0
    original = es.index

    async def tracking_index(**kwargs):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return await original(**kwargs)

    es.index = tracking_index
    items = [make_item(id=i, unit_id=1) for i in range(1, 6)]

    sequential = IndexSyncService(es, INDEX, source=FakeItemSource(items))
    await sequential.reindex_by_relation("unitId", 1)
    assert peak == 1

    peak = 0
    parallel = IndexSyncService(es, INDEX, source=FakeItemSource(items), cascade_concurrency=3)
    await parallel.reindex_by_relation("unitId", 1)
    assert 1 < peak <= 3


async def test_cascade_source_failure_returns_zero(es):
    sync = IndexSyncService(es, INDEX, source=FakeItemSource(fail=RuntimeError("db down")))
    assert await sync.reindex_by_relation("brandId", 1) == 0


# ============================================================================
# SyncDispatcher
# ============================================================================

async def test_dispatcher_runs_detached_and_drains(es):
    sync = IndexSyncService(es, INDEX, source=FakeItemSource([make_item(id=1), make_item(id=3)]))
    dispatcher = SyncDispatcher()
    dispatcher.submit(sync.upsert_one(1), name="upsert:1")
    dispatcher.submit(sync.upsert_one(3), name="upsert:3")
    assert dispatcher.pending == 2

    await dispatcher.drain()

    assert dispatcher.pending == 0
    assert set(es.docs(INDEX)) == {"1", "3"}


async def test_dispatcher_survives_crashing_task():
    async def boom():
        raise RuntimeError("unexpected")

    dispatcher = SyncDispatcher()
    dispatcher.submit(boom())
    await dispatcher.drain()
    assert dispatcher.pending == 0

