from abc import abstractmethod
from typing import Protocol

from catsync.domain.cache.model.record import CacheRecord, IndexDocument
from catsync.domain.search.model.value import SearchFilters


class SearchIndex(Protocol):
    """Full-text search view of the cache, keyed by entity id."""

    @abstractmethod
    async def ensure_index(self) -> None:
        """Create the index with its fixed schema if it does not exist.

        Never alters the schema of an existing index.
        """
        ...

    @abstractmethod
    async def upsert(self, entity_id: str, document: IndexDocument) -> None: ...

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Remove a document. A missing document is not an error."""
        ...

    @abstractmethod
    async def exists(self, entity_id: str) -> bool: ...

    @abstractmethod
    async def query(self, filters: SearchFilters) -> list[CacheRecord]:
        """Run one query and return a single ordered page of results."""
        ...

    @abstractmethod
    async def health(self) -> bool: ...
