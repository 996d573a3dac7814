"""SyncEngine - runs bootstrap, the change feed consumer and the retry timer."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.catalog.port.feed import ChangeFeed, Subscription
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.sync.model.value import ReconcileReport
from catsync.domain.sync.service.dual_writer import DualWriter
from catsync.domain.sync.service.reconciler import BootstrapReconciler
from catsync.domain.sync.service.retry_queue import RetryQueue

logger = logging.getLogger(__name__)


class EngineStatus(Enum):
    """Lifecycle of the sync engine."""

    STOPPED = "stopped"
    BOOTSTRAPPING = "bootstrapping"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class EngineState:
    """Runtime state of the sync engine (not persisted).

    Attributes:
        status: Current engine status.
        events_applied: Live events applied on the first attempt.
        events_failed: Live events that failed and went to the retry queue.
        last_reconcile: Report of the bootstrap pass, once it has run.
        feed_error: Error that ended the change feed subscription, if any.
        bootstrap_error: Last error from a startup phase that was skipped, if any.
    """

    status: EngineStatus = EngineStatus.STOPPED
    events_applied: int = 0
    events_failed: int = 0
    last_reconcile: ReconcileReport | None = None
    feed_error: Exception | None = None
    bootstrap_error: Exception | None = None


class SyncEngine:
    """Keeps the cache and search index in step with the upstream catalog.

    Startup order is strict: the index is created if needed, bootstrap
    reconciliation completes, missing documents are backfilled into the
    index, and only then is the change feed subscribed. The retry queue is
    drained on its own timer, concurrently with live feed processing; both
    paths go through the same DualWriter.

    The engine runs in the background and never on the request path.

    Usage:
        async with SyncEngine(feed, index, writer, reconciler, queue, 5.0):
            ...  # engine is running
        # feed closed, retry timer stopped
    """

    def __init__(
        self,
        feed: ChangeFeed,
        index: SearchIndex,
        writer: DualWriter,
        reconciler: BootstrapReconciler,
        retry_queue: RetryQueue,
        retry_interval: float = 5.0,
    ) -> None:
        if retry_interval <= 0:
            raise ValueError("retry_interval must be > 0")
        self._feed = feed
        self._index = index
        self._writer = writer
        self._reconciler = reconciler
        self._retry_queue = retry_queue
        self._retry_interval = retry_interval
        self._state = EngineState()
        self._subscription: Subscription | None = None
        self._retry_task: asyncio.Task | None = None
        self._stopping = asyncio.Event()

    @property
    def state(self) -> EngineState:
        """Current engine state."""
        return self._state

    @property
    def retry_queue(self) -> RetryQueue:
        return self._retry_queue

    async def start(self) -> None:
        """Bootstrap, then subscribe to the change feed and start the retry timer."""
        self._stopping.clear()
        self._state.status = EngineStatus.BOOTSTRAPPING
        self._state.feed_error = None
        self._state.bootstrap_error = None

        await self._bootstrap()

        self._subscription = await self._feed.subscribe(self.handle_event, self.handle_feed_error)
        self._retry_task = asyncio.create_task(self._run_retry_loop(), name="retry-drain")

        self._state.status = EngineStatus.RUNNING
        logger.info(f"Sync engine started (retry interval {self._retry_interval}s)")

    async def _bootstrap(self) -> None:
        """Prepare the index and heal drift before the feed is subscribed.

        A failing phase is logged and recorded in ``state.bootstrap_error``;
        the remaining phases still run and the feed is still subscribed.
        Drift left unhealed is picked up by the next start.
        """
        try:
            await self._index.ensure_index()
        except Exception as e:
            self._bootstrap_failed("Search index setup", e)

        try:
            self._state.last_reconcile = await self._reconciler.reconcile()
        except Exception as e:
            self._bootstrap_failed("Bootstrap reconciliation", e)

        try:
            await self._reconciler.backfill_index()
        except Exception as e:
            self._bootstrap_failed("Index backfill", e)

    def _bootstrap_failed(self, phase: str, error: Exception) -> None:
        self._state.bootstrap_error = error
        logger.error(f"{phase} failed, continuing startup: {error}")

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop consuming the feed and stop the retry timer.

        In-flight writes are allowed to finish; the retry task is only
        cancelled if it is still running after ``timeout`` seconds.
        """
        self._state.status = EngineStatus.STOPPING
        self._stopping.set()

        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None

        if self._retry_task is not None and not self._retry_task.done():
            done, pending = await asyncio.wait([self._retry_task], timeout=timeout)
            for task in pending:
                logger.warning("Retry drain did not finish in time, cancelling")
                task.cancel()
        self._retry_task = None

        if len(self._retry_queue):
            logger.warning(
                f"Stopping with {len(self._retry_queue)} change events still queued for retry; "
                "bootstrap reconciliation will heal them on next start"
            )

        self._state.status = EngineStatus.STOPPED
        logger.info("Sync engine stopped")

    async def handle_event(self, event: ChangeEvent) -> None:
        """Apply one live event; on failure hand it to the retry queue."""
        error = await self._writer.apply(event)
        if error is None:
            self._state.events_applied += 1
            return

        self._state.events_failed += 1
        await self._retry_queue.enqueue(event)
        logger.info(f"Queued {event.operation} for '{event.entity_id}' for retry")

    async def handle_feed_error(self, error: Exception) -> None:
        """Record a dropped feed. There is no automatic reconnect."""
        self._state.feed_error = error
        logger.error(
            f"Change feed ended: {error}. Changes are not being consumed until restart; "
            "bootstrap reconciliation will heal the gap"
        )

    async def drain_retry_queue(self) -> None:
        """Run one retry drain pass."""
        report = await self._retry_queue.drain_and_retry(self._writer)
        if report.attempted:
            logger.info(
                f"Retry drain: attempted={report.attempted} succeeded={report.succeeded} "
                f"requeued={report.requeued} dead_lettered={report.dead_lettered}"
            )

    async def _run_retry_loop(self) -> None:
        """Drain the retry queue every retry_interval seconds until stopped."""
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._retry_interval)
                break
            except TimeoutError:
                pass

            try:
                await self.drain_retry_queue()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Retry drain failed: {e}")

    async def __aenter__(self) -> "SyncEngine":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()
