"""Shared fixtures and in-memory fakes for catsync tests."""

from datetime import UTC, datetime
from typing import Any, AsyncIterator, Callable

import logfire
import pytest

from catsync.domain.cache.model.record import CacheRecord, IndexDocument
from catsync.domain.cache.port.store import CacheStore
from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.catalog.model.value import Category, Entity, Seller
from catsync.domain.catalog.port.catalog import UpstreamCatalog
from catsync.domain.catalog.port.feed import ChangeFeed, OnError, OnEvent, Subscription
from catsync.domain.search.model.value import SearchFilters
from catsync.domain.search.port.index import SearchIndex
from catsync.domain.shared.error import SearchUnavailableError, StoreWriteError
from catsync.domain.sync.service.dual_writer import DualWriter
from catsync.domain.sync.service.enricher import Enricher

logfire.configure(send_to_logfire=False, console=False)

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


class FakeCatalog(UpstreamCatalog):
    """In-memory upstream catalog."""

    def __init__(self) -> None:
        self.entities: dict[str, Entity] = {}
        self.categories: dict[str, Category] = {}
        self.category_error: Exception | None = None
        self.find_error: Exception | None = None

    def add(self, *entities: Entity) -> None:
        for entity in entities:
            self.entities[entity.id] = entity

    async def list_all(self) -> AsyncIterator[Entity]:
        for entity in list(self.entities.values()):
            yield entity

    async def find_by_id(self, entity_id: str) -> Entity | None:
        if self.find_error is not None:
            raise self.find_error
        return self.entities.get(entity_id)

    async def find_category(self, category_id: str) -> Category | None:
        if self.category_error is not None:
            raise self.category_error
        return self.categories.get(category_id)


class FakeCacheStore(CacheStore):
    """In-memory cache store.

    Set ``write_failures`` to make that many upcoming writes raise, or
    ``failing_ids`` to make every read and write for those ids raise.
    """

    def __init__(self) -> None:
        self.records: dict[str, CacheRecord] = {}
        self.write_failures = 0
        self.failing_ids: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _check_write(self, entity_id: str) -> None:
        if entity_id in self.failing_ids:
            raise StoreWriteError(f"cache unavailable for '{entity_id}'")
        if self.write_failures > 0:
            self.write_failures -= 1
            raise StoreWriteError("cache unavailable")

    async def upsert(self, entity_id: str, record: CacheRecord) -> None:
        self.calls.append(("upsert", entity_id))
        self._check_write(entity_id)
        self.records[entity_id] = record

    async def delete(self, entity_id: str) -> None:
        self.calls.append(("delete", entity_id))
        self._check_write(entity_id)
        self.records.pop(entity_id, None)

    async def find_by_id(self, entity_id: str) -> CacheRecord | None:
        if entity_id in self.failing_ids:
            raise StoreWriteError(f"cache unavailable for '{entity_id}'")
        return self.records.get(entity_id)

    async def list_all(self) -> AsyncIterator[CacheRecord]:
        for record in sorted(self.records.values(), key=lambda r: r.id):
            yield record


class FakeSearchIndex(SearchIndex):
    """In-memory search index with naive substring matching."""

    def __init__(self) -> None:
        self.documents: dict[str, IndexDocument] = {}
        self.write_failures = 0
        self.ensured = 0
        self.healthy = True
        self.calls: list[tuple[str, str]] = []

    def _check_write(self) -> None:
        if self.write_failures > 0:
            self.write_failures -= 1
            raise StoreWriteError("index unavailable")

    async def ensure_index(self) -> None:
        self.calls.append(("ensure_index", ""))
        self.ensured += 1

    async def upsert(self, entity_id: str, document: IndexDocument) -> None:
        self.calls.append(("upsert", entity_id))
        self._check_write()
        self.documents[entity_id] = document

    async def delete(self, entity_id: str) -> None:
        self.calls.append(("delete", entity_id))
        self._check_write()
        self.documents.pop(entity_id, None)

    async def exists(self, entity_id: str) -> bool:
        return entity_id in self.documents

    async def query(self, filters: SearchFilters) -> list[CacheRecord]:
        if not self.healthy:
            raise SearchUnavailableError("index unavailable")
        return [
            CacheRecord(**doc.model_dump())
            for doc in self.documents.values()
            if _matches(doc, filters)
        ]

    async def health(self) -> bool:
        return self.healthy


def _contains(value: str | None, needle: str | None) -> bool:
    if not needle:
        return True
    return value is not None and needle.lower() in value.lower()


def _matches(doc: IndexDocument, filters: SearchFilters) -> bool:
    if filters.text and not any(
        _contains(v, filters.text) for v in (doc.title, doc.description, doc.category)
    ):
        return False
    if not (
        _contains(doc.title, filters.title)
        and _contains(doc.description, filters.description)
        and _contains(doc.category, filters.category)
    ):
        return False
    if filters.price is not None:
        if filters.price.min is not None and doc.price < filters.price.min:
            return False
        if filters.price.max is not None and doc.price > filters.price.max:
            return False
    return True


class FakeSubscription(Subscription):
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


class FakeChangeFeed(ChangeFeed):
    """Change feed driven by the test through ``emit``."""

    def __init__(self) -> None:
        self.on_event: OnEvent | None = None
        self.on_error: OnError | None = None
        self.subscription: FakeSubscription | None = None
        self.subscribe_error: Exception | None = None

    async def subscribe(self, on_event: OnEvent, on_error: OnError) -> Subscription:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.on_event = on_event
        self.on_error = on_error
        self.subscription = FakeSubscription()
        return self.subscription

    async def emit(self, event: ChangeEvent) -> None:
        assert self.on_event is not None, "not subscribed"
        await self.on_event(event)


@pytest.fixture
def make_entity() -> Callable[..., Entity]:
    """Factory for upstream entities with sensible defaults."""

    def _make(entity_id: str = "p1", **overrides: Any) -> Entity:
        fields: dict[str, Any] = {
            "id": entity_id,
            "title": "Lamp",
            "description": "A desk lamp",
            "price": 25.0,
            "quantity": 3,
            "category_id": "c1",
            "image": "https://img.example.com/lamp.png",
            "image_ref": "blob-lamp",
            "seller": Seller(id="s1", profile_url="https://example.com/s1"),
            "updated_at": T0,
        }
        fields.update(overrides)
        return Entity(**fields)

    return _make


@pytest.fixture
def catalog() -> FakeCatalog:
    fake = FakeCatalog()
    fake.categories["c1"] = Category(id="c1", name="Lighting")
    return fake


@pytest.fixture
def cache() -> FakeCacheStore:
    return FakeCacheStore()


@pytest.fixture
def index() -> FakeSearchIndex:
    return FakeSearchIndex()


@pytest.fixture
def feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def enricher(catalog: FakeCatalog) -> Enricher:
    return Enricher(catalog=catalog)


@pytest.fixture
def writer(enricher: Enricher, cache: FakeCacheStore, index: FakeSearchIndex) -> DualWriter:
    return DualWriter(enricher=enricher, cache=cache, index=index)
