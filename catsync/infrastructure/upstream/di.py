"""Dependency injection provider for the upstream catalog and its change feed."""

from typing import AsyncIterable

from dishka import Provider, provide
from pymongo import AsyncMongoClient

from catsync.config import Config
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.domain.catalog.port.feed import ChangeFeed
from catsync.infrastructure.upstream.mongo.catalog import MongoUpstreamCatalog
from catsync.infrastructure.upstream.mongo.feed import MongoChangeFeed
from catsync.util.di.scope import Scope


class UpstreamProvider(Provider):
    """Provides read access to the upstream catalog service's database."""

    @provide(scope=Scope.APP)
    async def get_client(self, config: Config) -> AsyncIterable[AsyncMongoClient]:
        client = AsyncMongoClient(config.upstream.url, tz_aware=True)
        yield client
        await client.close()

    @provide(scope=Scope.APP)
    def get_catalog(self, client: AsyncMongoClient, config: Config) -> UpstreamCatalog:
        db = client[config.upstream.database]
        return MongoUpstreamCatalog(
            products=db[config.upstream.products_collection],
            categories=db[config.upstream.categories_collection],
        )

    @provide(scope=Scope.APP)
    def get_change_feed(self, client: AsyncMongoClient, config: Config) -> ChangeFeed:
        db = client[config.upstream.database]
        return MongoChangeFeed(db[config.upstream.products_collection])
