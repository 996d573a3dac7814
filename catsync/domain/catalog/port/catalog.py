from abc import abstractmethod
from typing import AsyncIterator, Protocol

from catsync.domain.catalog.model.value import Category, Entity


class UpstreamCatalog(Protocol):
    """Bulk and point reads against the upstream catalog of record."""

    @abstractmethod
    def list_all(self) -> AsyncIterator[Entity]: ...

    @abstractmethod
    async def find_by_id(self, entity_id: str) -> Entity | None: ...

    @abstractmethod
    async def find_category(self, category_id: str) -> Category | None: ...
