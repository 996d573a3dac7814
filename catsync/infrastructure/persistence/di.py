from typing import AsyncIterable

from dishka import Provider, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from catsync.config import Config
from catsync.domain.cache.port.store import CacheStore
from catsync.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    create_tables,
)
from catsync.infrastructure.persistence.repository.cache import SqlCacheStore
from catsync.util.di.scope import Scope


class PersistenceProvider(Provider):
    """Provides the cache store and its database handles."""

    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        if config.database.auto_create:
            await create_tables(engine)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    def get_cache_store(self, session_factory: async_sessionmaker[AsyncSession]) -> CacheStore:
        return SqlCacheStore(session_factory)
