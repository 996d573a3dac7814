"""Enricher - projects upstream entities into denormalized cache records."""

import logging

from catsync.domain.cache.model.record import CacheRecord
from catsync.domain.catalog.model.value import Entity
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.domain.shared.error import ReferenceResolutionError
from catsync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class Enricher(Service):
    """Resolves foreign references on an entity into a CacheRecord.

    The only reference resolved today is category_id -> category name.
    An entity without a category, or whose category no longer exists
    upstream, gets ``category=None``.
    """

    catalog: UpstreamCatalog

    async def enrich(self, entity: Entity) -> CacheRecord:
        """Build the cache record for an entity.

        Raises:
            ReferenceResolutionError: If the category lookup itself fails.
        """
        category_name: str | None = None

        if entity.category_id:
            try:
                category = await self.catalog.find_category(entity.category_id)
            except Exception as e:
                raise ReferenceResolutionError(entity.category_id, e) from e

            if category is None:
                logger.debug(f"Category '{entity.category_id}' of '{entity.id}' not found")
            else:
                category_name = category.name

        return CacheRecord(**entity.model_dump(), category=category_name)
