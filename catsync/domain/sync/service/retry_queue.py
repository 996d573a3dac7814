"""RetryQueue - in-memory buffer of change events whose application failed."""

import asyncio
import logging

from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.sync.model.value import DrainReport, RetryQueueItem
from catsync.domain.sync.service.dual_writer import DualWriter

logger = logging.getLogger(__name__)


class RetryQueue:
    """Unbounded multiset of failed change events, re-applied on each drain.

    Events are not deduplicated: an entity that fails twice before a drain
    is retried twice, which is safe because DualWriter application is
    idempotent. Contents live only in process memory and are lost on crash;
    bootstrap reconciliation on the next start heals that gap.

    A drain swaps the pending list out under the lock and processes the
    swapped-out items without holding it, so the feed can keep enqueueing
    while store I/O is in flight. Items failing again go to the new list,
    giving each item at most one attempt per drain.

    By default a failing event is retried forever. With ``max_attempts`` set,
    an item that has failed that many times, counting the original live
    failure, is moved to ``dead_letters`` instead of being requeued.
    """

    def __init__(self, max_attempts: int | None = None) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._max_attempts = max_attempts
        self._items: list[RetryQueueItem] = []
        self._dead_letters: list[RetryQueueItem] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._items)

    @property
    def max_attempts(self) -> int | None:
        return self._max_attempts

    @property
    def dead_letters(self) -> list[RetryQueueItem]:
        """Items that exhausted max_attempts (empty when retrying forever)."""
        return list(self._dead_letters)

    def pending(self) -> list[RetryQueueItem]:
        """Snapshot of the items waiting for the next drain."""
        return list(self._items)

    async def enqueue(self, event: ChangeEvent) -> None:
        """Add a freshly failed event."""
        item = RetryQueueItem(event=event)
        if self._exhausted(item):
            self._dead_letters.append(item)
            logger.critical(f"Not retrying {event.operation} for '{event.entity_id}'")
            return
        await self._put(item)

    async def drain_and_retry(self, writer: DualWriter) -> DrainReport:
        """Re-apply every pending item once through the dual writer.

        Each item is retried against the entity's current upstream state, so a
        stale queued snapshot can never overwrite a newer write or bring back
        a deleted entity.
        """
        async with self._lock:
            batch, self._items = self._items, []

        report = DrainReport(attempted=len(batch))
        if not batch:
            return report

        logger.info(f"Retrying {len(batch)} failed change events")

        for item in batch:
            error = await writer.reapply(item.event)
            if error is None:
                report.succeeded += 1
                logger.debug(
                    f"Retried {item.event.operation} for '{item.event.entity_id}' "
                    f"after {item.attempts} failed attempts"
                )
                continue

            retried = item.retried()
            if self._exhausted(retried):
                self._dead_letters.append(retried)
                report.dead_lettered += 1
                logger.critical(
                    f"Giving up on {item.event.operation} for '{item.event.entity_id}' "
                    f"after {retried.attempts} attempts: {error.cause}"
                )
                continue

            await self._put(retried)
            report.requeued += 1

        if report.requeued:
            logger.warning(f"{report.requeued} change events failed again, requeued")
        return report

    def _exhausted(self, item: RetryQueueItem) -> bool:
        return self._max_attempts is not None and item.attempts >= self._max_attempts

    async def _put(self, item: RetryQueueItem) -> None:
        async with self._lock:
            self._items.append(item)
