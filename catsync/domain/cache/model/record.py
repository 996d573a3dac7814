"""Denormalized projections written to the local cache and the search index."""

from catsync.domain.catalog.model.value import Seller
from catsync.domain.shared.model.value import UtcDatetime, ValueObject


class IndexDocument(ValueObject):
    """Search index view of a product. Same shape as CacheRecord minus image_ref."""

    id: str
    title: str
    description: str
    category_id: str | None = None
    category: str | None = None
    price: float
    quantity: int
    image: str | None = None
    seller: Seller
    updated_at: UtcDatetime


class CacheRecord(ValueObject):
    """Local replica of an upstream product with its category name resolved.

    updated_at is copied from the upstream entity the record was derived from,
    so it is never older than that version.
    """

    id: str
    title: str
    description: str
    category_id: str | None = None
    category: str | None = None
    price: float
    quantity: int
    image: str | None = None
    image_ref: str | None = None
    seller: Seller
    updated_at: UtcDatetime

    def to_index_document(self) -> IndexDocument:
        return IndexDocument(**self.model_dump(exclude={"image_ref"}))
