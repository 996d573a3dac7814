"""Dependency injection provider for the search index."""

from typing import AsyncIterable

from dishka import Provider, provide
from elasticsearch import AsyncElasticsearch

from catsync.config import Config
from catsync.domain.search.port.index import SearchIndex
from catsync.infrastructure.index.elasticsearch.backend import ElasticsearchSearchIndex
from catsync.util.di.scope import Scope


class IndexProvider(Provider):
    """Provides the configured search index backend."""

    @provide(scope=Scope.APP)
    async def get_client(self, config: Config) -> AsyncIterable[AsyncElasticsearch]:
        client = AsyncElasticsearch(
            hosts=[config.search.url],
            api_key=config.search.api_key,
        )
        yield client
        await client.close()

    @provide(scope=Scope.APP)
    def get_search_index(self, client: AsyncElasticsearch, config: Config) -> SearchIndex:
        return ElasticsearchSearchIndex(client, config.search)
