"""Unit tests for BootstrapReconciler."""

from datetime import UTC, datetime, timedelta

import pytest

from catsync.domain.sync.model.value import ReconcileOutcome
from catsync.domain.sync.service.reconciler import BootstrapReconciler

T1 = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
T2 = T1 + timedelta(hours=1)


@pytest.fixture
def reconciler(catalog, cache, index, writer) -> BootstrapReconciler:
    return BootstrapReconciler(catalog=catalog, cache=cache, index=index, writer=writer)


class TestReconcile:
    """Tests for the full reconciliation pass."""

    @pytest.mark.asyncio
    async def test_missing_entities_are_inserted(self, reconciler, catalog, cache, index, make_entity):
        catalog.add(make_entity("p1"), make_entity("p2", title="Desk"))

        report = await reconciler.reconcile()

        assert report.scanned == 2
        assert report.inserted == 2
        assert set(cache.records) == {"p1", "p2"}
        assert set(index.documents) == {"p1", "p2"}

    @pytest.mark.asyncio
    async def test_newer_upstream_wins(self, reconciler, catalog, cache, make_entity):
        """Cache at T1, upstream at T2 > T1: the cache is updated."""
        await reconciler.reconcile_entity(make_entity("p1", price=10.0, updated_at=T1))
        catalog.add(make_entity("p1", price=12.0, updated_at=T2))

        report = await reconciler.reconcile()

        assert report.updated == 1
        assert cache.records["p1"].price == 12.0
        assert cache.records["p1"].updated_at == T2

    @pytest.mark.asyncio
    async def test_equal_timestamp_is_unchanged(self, reconciler, catalog, cache, index, make_entity):
        await reconciler.reconcile_entity(make_entity("p1", price=10.0, updated_at=T1))
        cache_calls, index_calls = len(cache.calls), len(index.calls)
        catalog.add(make_entity("p1", price=99.0, updated_at=T1))

        report = await reconciler.reconcile()

        assert report.unchanged == 1
        assert cache.records["p1"].price == 10.0
        assert len(cache.calls) == cache_calls
        assert len(index.calls) == index_calls

    @pytest.mark.asyncio
    async def test_older_upstream_never_overwrites(self, reconciler, catalog, cache, make_entity):
        await reconciler.reconcile_entity(make_entity("p1", price=12.0, updated_at=T2))
        catalog.add(make_entity("p1", price=10.0, updated_at=T1))

        report = await reconciler.reconcile()

        assert report.unchanged == 1
        assert cache.records["p1"].price == 12.0

    @pytest.mark.asyncio
    async def test_orphaned_cache_records_are_kept(self, reconciler, catalog, cache, index, make_entity):
        """Records whose upstream entity is gone are not deleted by bootstrap."""
        await reconciler.reconcile_entity(make_entity("p2"))
        catalog.add(make_entity("p1"))

        await reconciler.reconcile()

        assert set(cache.records) == {"p1", "p2"}
        assert "p2" in index.documents

    @pytest.mark.asyncio
    async def test_failure_on_one_entity_does_not_stop_the_pass(
        self, reconciler, catalog, cache, make_entity
    ):
        catalog.add(make_entity("p1"), make_entity("p2"), make_entity("p3"))
        cache.failing_ids.add("p2")

        report = await reconciler.reconcile()

        assert report.scanned == 3
        assert report.inserted == 2
        assert report.failed == 1
        assert set(cache.records) == {"p1", "p3"}

    @pytest.mark.asyncio
    async def test_index_failure_counts_as_failed(self, reconciler, catalog, index, make_entity):
        catalog.add(make_entity("p1"))
        index.write_failures = 1

        report = await reconciler.reconcile()

        assert report.failed == 1
        assert report.inserted == 0


class TestReconcileEntity:
    @pytest.mark.asyncio
    async def test_outcomes(self, reconciler, make_entity):
        assert await reconciler.reconcile_entity(make_entity("p1", updated_at=T1)) == (
            ReconcileOutcome.INSERTED
        )
        assert await reconciler.reconcile_entity(make_entity("p1", updated_at=T2)) == (
            ReconcileOutcome.UPDATED
        )
        assert await reconciler.reconcile_entity(make_entity("p1", updated_at=T2)) == (
            ReconcileOutcome.UNCHANGED
        )


class TestBackfillIndex:
    @pytest.mark.asyncio
    async def test_indexes_cached_records_missing_from_index(
        self, reconciler, catalog, cache, index, make_entity
    ):
        catalog.add(make_entity("p1"), make_entity("p2"))
        await reconciler.reconcile()
        index.documents.clear()
        index.calls.clear()

        indexed = await reconciler.backfill_index()

        assert indexed == 2
        assert set(index.documents) == {"p1", "p2"}
        assert index.documents["p1"] == cache.records["p1"].to_index_document()

    @pytest.mark.asyncio
    async def test_existing_documents_are_left_alone(self, reconciler, catalog, index, make_entity):
        catalog.add(make_entity("p1"))
        await reconciler.reconcile()
        index.calls.clear()

        indexed = await reconciler.backfill_index()

        assert indexed == 0
        assert index.calls == []

    @pytest.mark.asyncio
    async def test_failed_documents_are_skipped(self, reconciler, catalog, index, make_entity):
        catalog.add(make_entity("p1"), make_entity("p2"))
        await reconciler.reconcile()
        index.documents.clear()
        index.write_failures = 1

        indexed = await reconciler.backfill_index()

        assert indexed == 1
        assert set(index.documents) == {"p2"}
