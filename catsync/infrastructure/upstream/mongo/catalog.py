"""Upstream catalog reads against the catalog service's MongoDB."""

import logging
from typing import Any, AsyncIterator

from pydantic import ValidationError as PydanticValidationError
from pymongo.asynchronous.collection import AsyncCollection

from catsync.domain.catalog.model.value import Category, Entity
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.infrastructure.upstream.mongo.mappers import (
    document_to_category,
    document_to_entity,
    to_key,
)

logger = logging.getLogger(__name__)


class MongoUpstreamCatalog(UpstreamCatalog):
    """Read-only view of the upstream products and categories collections."""

    def __init__(
        self,
        products: AsyncCollection[dict[str, Any]],
        categories: AsyncCollection[dict[str, Any]],
    ) -> None:
        self._products = products
        self._categories = categories

    async def list_all(self) -> AsyncIterator[Entity]:
        """Yield every upstream product.

        Documents that do not map to an Entity are logged and skipped so one
        malformed product cannot stop a full-catalog walk.
        """
        async for doc in self._products.find({}):
            try:
                yield document_to_entity(doc)
            except (KeyError, PydanticValidationError) as e:
                logger.error(f"Skipping malformed upstream product {doc.get('_id')}: {e}")

    async def find_by_id(self, entity_id: str) -> Entity | None:
        doc = await self._products.find_one({"_id": to_key(entity_id)})
        return document_to_entity(doc) if doc else None

    async def find_category(self, category_id: str) -> Category | None:
        doc = await self._categories.find_one({"_id": to_key(category_id)})
        return document_to_category(doc) if doc else None
