from typing import Any, AsyncIterator

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catsync.domain.cache.model.record import CacheRecord
from catsync.domain.cache.port.store import CacheStore
from catsync.domain.shared.error import (
    ConfigurationError,
    StorageUnavailableError,
    StoreWriteError,
)
from catsync.infrastructure.persistence.mappers.cache import record_to_dict, row_to_record
from catsync.infrastructure.persistence.tables import product_cache_table

_LIST_CHUNK = 500


class SqlCacheStore(CacheStore):
    """SQL implementation of CacheStore.

    Each call runs in its own short transaction so the live feed and the
    retry drain can write concurrently without sharing a session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def upsert(self, entity_id: str, record: CacheRecord) -> None:
        values = record_to_dict(record)
        values["id"] = entity_id
        try:
            async with self._session_factory() as session, session.begin():
                stmt = _upsert_statement(session.bind.dialect.name, values)
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Cache upsert failed for '{entity_id}': {e}") from e

    async def delete(self, entity_id: str) -> None:
        stmt = delete(product_cache_table).where(product_cache_table.c.id == entity_id)
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Cache delete failed for '{entity_id}': {e}") from e

    async def find_by_id(self, entity_id: str) -> CacheRecord | None:
        stmt = select(product_cache_table).where(product_cache_table.c.id == entity_id)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
        except SQLAlchemyError as e:
            raise StorageUnavailableError(f"Cache lookup failed for '{entity_id}': {e}") from e
        return row_to_record(dict(row)) if row else None

    async def list_all(self) -> AsyncIterator[CacheRecord]:
        """Yield every cached record in id order, one chunk per query."""
        last_id: str | None = None
        while True:
            stmt = select(product_cache_table).order_by(product_cache_table.c.id).limit(_LIST_CHUNK)
            if last_id is not None:
                stmt = stmt.where(product_cache_table.c.id > last_id)
            try:
                async with self._session_factory() as session:
                    result = await session.execute(stmt)
                    rows = [dict(r) for r in result.mappings().all()]
            except SQLAlchemyError as e:
                raise StorageUnavailableError(f"Cache scan failed: {e}") from e

            for row in rows:
                yield row_to_record(row)

            if len(rows) < _LIST_CHUNK:
                return
            last_id = rows[-1]["id"]


def _upsert_statement(dialect: str, values: dict[str, Any]):
    """INSERT ... ON CONFLICT (id) DO UPDATE for the active dialect."""
    match dialect:
        case "postgresql":
            stmt = postgresql.insert(product_cache_table).values(**values)
        case "sqlite":
            stmt = sqlite.insert(product_cache_table).values(**values)
        case _:
            raise ConfigurationError(f"Unsupported cache database dialect: {dialect}")

    return stmt.on_conflict_do_update(
        index_elements=[product_cache_table.c.id],
        set_={name: stmt.excluded[name] for name in values if name != "id"},
    )
