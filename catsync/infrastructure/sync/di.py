"""Dependency injection provider for the synchronization engine."""

import logging

from dishka import Provider, provide

from catsync.config import Config
from catsync.domain.cache.port.store import CacheStore
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.domain.catalog.port.feed import ChangeFeed
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.search.service.search import SearchService
from catsync.domain.sync.service.dual_writer import DualWriter
from catsync.domain.sync.service.enricher import Enricher
from catsync.domain.sync.service.reconciler import BootstrapReconciler
from catsync.domain.sync.service.retry_queue import RetryQueue
from catsync.infrastructure.sync.engine import SyncEngine
from catsync.util.di.scope import Scope

logger = logging.getLogger(__name__)


class SyncProvider(Provider):
    """Provides the sync engine and its services.

    Everything here is APP-scoped: the retry queue in particular must be a
    single instance shared by the feed consumer and the retry timer.
    """

    @provide(scope=Scope.APP)
    def get_enricher(self, catalog: UpstreamCatalog) -> Enricher:
        return Enricher(catalog=catalog)

    @provide(scope=Scope.APP)
    def get_dual_writer(
        self, enricher: Enricher, cache: CacheStore, index: SearchIndex
    ) -> DualWriter:
        return DualWriter(enricher=enricher, cache=cache, index=index)

    @provide(scope=Scope.APP)
    def get_retry_queue(self, config: Config) -> RetryQueue:
        return RetryQueue(max_attempts=config.retry.max_attempts)

    @provide(scope=Scope.APP)
    def get_reconciler(
        self,
        catalog: UpstreamCatalog,
        cache: CacheStore,
        index: SearchIndex,
        writer: DualWriter,
    ) -> BootstrapReconciler:
        return BootstrapReconciler(catalog=catalog, cache=cache, index=index, writer=writer)

    @provide(scope=Scope.APP)
    def get_search_service(self, index: SearchIndex) -> SearchService:
        return SearchService(index=index)

    @provide(scope=Scope.APP)
    def get_sync_engine(
        self,
        config: Config,
        feed: ChangeFeed,
        index: SearchIndex,
        writer: DualWriter,
        reconciler: BootstrapReconciler,
        retry_queue: RetryQueue,
    ) -> SyncEngine:
        engine = SyncEngine(
            feed=feed,
            index=index,
            writer=writer,
            reconciler=reconciler,
            retry_queue=retry_queue,
            retry_interval=config.retry.interval,
        )
        logger.debug(
            f"SyncEngine created (retry every {config.retry.interval_ms}ms, "
            f"max attempts {config.retry.max_attempts or 'unlimited'})"
        )
        return engine
