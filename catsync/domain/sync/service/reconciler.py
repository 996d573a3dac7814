"""BootstrapReconciler - heals drift accumulated while the change feed was not consumed."""

import logging

import logfire

from catsync.domain.cache.port.store import CacheStore
from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.catalog.model.value import Entity
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.error import BootstrapError
from catsync.domain.shared.service import Service
from catsync.domain.sync.model.value import ReconcileOutcome, ReconcileReport
from catsync.domain.sync.service.dual_writer import DualWriter

logger = logging.getLogger(__name__)


class BootstrapReconciler(Service):
    """Full-catalog comparison pass run once at startup.

    Must finish before the change feed subscription starts; running both at
    once lets a stale bootstrap write overwrite a live update.

    Entities missing from the cache are treated as missed inserts, entities
    newer upstream than in the cache as missed updates (last write wins on
    ``updated_at``). Cache records whose upstream entity no longer exists are
    left in place: orphan cleanup is not part of bootstrap, and deletes are
    only propagated by live delete events.
    """

    catalog: UpstreamCatalog
    cache: CacheStore
    index: SearchIndex
    writer: DualWriter

    async def reconcile(self) -> ReconcileReport:
        """Walk the upstream catalog and bring the cache up to date.

        A failure on one entity is logged and skipped; it never aborts the
        pass for the remaining entities.
        """
        report = ReconcileReport()

        with logfire.span("BootstrapReconcile"):
            async for entity in self.catalog.list_all():
                report.scanned += 1
                try:
                    outcome = await self.reconcile_entity(entity)
                except BootstrapError as e:
                    report.failed += 1
                    logger.error(str(e))
                    continue
                report.record(outcome)

        logger.info(
            f"Bootstrap reconciliation complete: scanned={report.scanned} "
            f"inserted={report.inserted} updated={report.updated} "
            f"unchanged={report.unchanged} failed={report.failed}"
        )
        return report

    async def reconcile_entity(self, entity: Entity) -> ReconcileOutcome:
        """Reconcile a single upstream entity against the cache.

        Raises:
            BootstrapError: If the cache lookup or the write fails.
        """
        try:
            cached = await self.cache.find_by_id(entity.id)
        except Exception as e:
            raise BootstrapError(entity.id, e) from e

        if cached is None:
            event, outcome = ChangeEvent.insert(entity), ReconcileOutcome.INSERTED
        elif entity.updated_at > cached.updated_at:
            event, outcome = ChangeEvent.update(entity), ReconcileOutcome.UPDATED
        else:
            return ReconcileOutcome.UNCHANGED

        error = await self.writer.apply(event)
        if error is not None:
            raise BootstrapError(entity.id, error.cause) from error

        logger.debug(f"Bootstrap {outcome} '{entity.id}'")
        return outcome

    async def backfill_index(self) -> int:
        """Index every cached record that is missing from the search index.

        Covers an index that was recreated or lost documents while the cache
        kept them. Existing documents are left as they are.

        Returns:
            Number of documents indexed.
        """
        indexed = 0
        async for record in self.cache.list_all():
            try:
                if await self.index.exists(record.id):
                    continue
                await self.index.upsert(record.id, record.to_index_document())
            except Exception as e:
                logger.error(f"Failed to backfill '{record.id}' into the search index: {e}")
                continue
            indexed += 1

        logger.info(f"Index backfill complete: {indexed} documents indexed")
        return indexed
