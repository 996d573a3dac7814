"""Search index backend using Elasticsearch."""

import logging
from typing import Any

from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    NotFoundError,
    TransportError,
)

from catsync.config import SearchConfig
from catsync.domain.cache.model.record import CacheRecord, IndexDocument
from catsync.domain.search.model.value import SearchFilters
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.error import SearchUnavailableError, StoreWriteError
from catsync.infrastructure.index.elasticsearch.query import build_query

logger = logging.getLogger(__name__)

# Fixed field schema. Existing indexes are never migrated to a new mapping.
MAPPINGS: dict[str, Any] = {
    "properties": {
        "title": {"type": "text"},
        "description": {"type": "text"},
        "category_id": {"type": "keyword"},
        "category": {"type": "text"},
        "price": {"type": "double"},
        "quantity": {"type": "integer"},
        "image": {"type": "keyword"},
        "seller": {
            "properties": {
                "id": {"type": "keyword"},
                "profile_url": {"type": "keyword"},
                "profile_image_ref": {"type": "keyword"},
            }
        },
        "updated_at": {"type": "date"},
    }
}


class ElasticsearchSearchIndex(SearchIndex):
    """Product search index on Elasticsearch.

    Documents are stored under the entity id with the IndexDocument fields
    (minus the id) as source. Writes are unconditional replaces.
    """

    def __init__(self, client: AsyncElasticsearch, config: SearchConfig) -> None:
        self._client = client
        self._config = config

    @property
    def name(self) -> str:
        return self._config.index

    async def ensure_index(self) -> None:
        try:
            if await self._client.indices.exists(index=self.name):
                logger.debug(f"Search index '{self.name}' already exists")
                return

            await self._client.indices.create(
                index=self.name,
                settings={
                    "number_of_shards": self._config.shards,
                    "number_of_replicas": self._config.replicas,
                },
                mappings=MAPPINGS,
            )
        except BadRequestError as e:
            # Another instance created it between the exists check and create
            if e.error == "resource_already_exists_exception":
                return
            raise StoreWriteError(f"Failed to create search index '{self.name}': {e}") from e
        except (ApiError, TransportError) as e:
            raise StoreWriteError(f"Failed to create search index '{self.name}': {e}") from e

        logger.info(f"Created search index '{self.name}'")

    async def upsert(self, entity_id: str, document: IndexDocument) -> None:
        try:
            await self._client.index(
                index=self.name,
                id=entity_id,
                document=document.model_dump(mode="json", exclude={"id"}),
            )
        except (ApiError, TransportError) as e:
            raise StoreWriteError(f"Index upsert failed for '{entity_id}': {e}") from e

    async def delete(self, entity_id: str) -> None:
        try:
            await self._client.delete(index=self.name, id=entity_id)
        except NotFoundError:
            logger.debug(f"'{entity_id}' not in search index, nothing to delete")
        except (ApiError, TransportError) as e:
            raise StoreWriteError(f"Index delete failed for '{entity_id}': {e}") from e

    async def exists(self, entity_id: str) -> bool:
        try:
            return bool(await self._client.exists(index=self.name, id=entity_id))
        except (ApiError, TransportError) as e:
            raise SearchUnavailableError(f"Index lookup failed for '{entity_id}': {e}") from e

    async def query(self, filters: SearchFilters) -> list[CacheRecord]:
        try:
            response = await self._client.search(
                index=self.name,
                query=build_query(filters),
                size=self._config.page_size,
            )
        except (ApiError, TransportError) as e:
            raise SearchUnavailableError(f"Search on '{self.name}' failed: {e}") from e

        hits = response["hits"]["hits"]
        return [CacheRecord(id=hit["_id"], **hit["_source"]) for hit in hits]

    async def health(self) -> bool:
        """Check if the search cluster is reachable."""
        try:
            return bool(await self._client.ping())
        except Exception:
            return False
