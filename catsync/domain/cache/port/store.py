from abc import abstractmethod
from typing import AsyncIterator, Protocol

from catsync.domain.cache.model.record import CacheRecord


class CacheStore(Protocol):
    """Local replica of the upstream catalog, keyed by entity id.

    Implementations must tolerate concurrent calls for different ids.
    """

    @abstractmethod
    async def upsert(self, entity_id: str, record: CacheRecord) -> None:
        """Unconditionally replace the record stored under entity_id."""
        ...

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Remove the record. A missing record is not an error."""
        ...

    @abstractmethod
    async def find_by_id(self, entity_id: str) -> CacheRecord | None: ...

    @abstractmethod
    def list_all(self) -> AsyncIterator[CacheRecord]: ...
