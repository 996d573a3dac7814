"""DualWriter - applies one change event to the cache store and the search index."""

import logging
from typing import assert_never

import logfire

from catsync.domain.cache.port.store import CacheStore
from catsync.domain.catalog.model.event import ChangeEvent, Operation
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.error import SyncError
from catsync.domain.shared.service import Service
from catsync.domain.sync.service.enricher import Enricher

logger = logging.getLogger(__name__)


class DualWriter(Service):
    """Best-effort dual write of a change into the cache and the search index.

    The two stores are not transactionally linked. The cache is always written
    first; the search index is a secondary view and may lag behind it. Both
    writes are unconditional replaces (or idempotent deletes), so re-applying
    an event is always safe. Retries go through reapply(), which writes the
    current upstream state rather than the queued snapshot.

    Failures are returned, not raised, and nothing is retried here; the
    caller decides whether the event goes to the retry queue.
    """

    enricher: Enricher
    cache: CacheStore
    index: SearchIndex

    async def apply(self, event: ChangeEvent) -> SyncError | None:
        """Apply a change event to both stores.

        Returns:
            None on success, or a SyncError wrapping the first error encountered.
            If the cache write fails the index write is skipped. If the index
            write fails the event is still reported failed even though the
            cache is already up to date.
        """
        with logfire.span(
            "ApplyChange", entity_id=event.entity_id, operation=str(event.operation)
        ):
            try:
                await self._apply(event)
            except Exception as e:
                logger.warning(f"Failed to apply {event.operation} for '{event.entity_id}': {e}")
                return SyncError(event.entity_id, e)

        logger.debug(f"Applied {event.operation} for '{event.entity_id}'")
        return None

    async def reapply(self, event: ChangeEvent) -> SyncError | None:
        """Re-apply a previously failed event using the entity's current upstream state.

        The queued snapshot may be older than what the stores already hold, so
        it is never written. The entity is read again from the upstream
        catalog: if it still exists its current version is upserted, otherwise
        it is deleted from both stores.

        Returns:
            None on success, or a SyncError wrapping the first error encountered.
        """
        try:
            entity = await self.enricher.catalog.find_by_id(event.entity_id)
        except Exception as e:
            logger.warning(f"Failed to re-read '{event.entity_id}' from upstream: {e}")
            return SyncError(event.entity_id, e)

        if entity is None:
            current = ChangeEvent.delete(event.entity_id)
        else:
            current = ChangeEvent.update(entity)

        if (entity is None) != (event.operation is Operation.DELETE):
            logger.info(
                f"Retrying {event.operation} for '{event.entity_id}' as {current.operation} "
                "to match upstream"
            )
        return await self.apply(current)

    async def _apply(self, event: ChangeEvent) -> None:
        match event.operation:
            case Operation.INSERT | Operation.UPDATE:
                assert event.full_entity is not None
                record = await self.enricher.enrich(event.full_entity)
                await self.cache.upsert(event.entity_id, record)
                await self.index.upsert(event.entity_id, record.to_index_document())
            case Operation.DELETE:
                await self.cache.delete(event.entity_id)
                await self.index.delete(event.entity_id)
            case _:
                assert_never(event.operation)
