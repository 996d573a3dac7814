"""SearchService - product search for the order placement path and search API."""

import logging

from catsync.domain.cache.model.record import CacheRecord
from catsync.domain.search.model.value import SearchFilters
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class SearchService(Service):
    """Queries the search index.

    Results come from the search index, which may lag the cache by up to one
    retry interval after a failed index write.
    """

    index: SearchIndex

    async def search(self, filters: SearchFilters) -> list[CacheRecord]:
        records = await self.index.query(filters)
        logger.debug(f"Search returned {len(records)} records")
        return records
