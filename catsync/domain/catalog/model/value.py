"""Upstream catalog records, as read from the catalog of record.

These are owned by the upstream catalog service and are read-only here.
"""

from pydantic import Field

from catsync.domain.shared.model.value import UtcDatetime, ValueObject


class Seller(ValueObject):
    """Seller reference embedded in a product."""

    id: str
    profile_url: str | None = None
    profile_image_ref: str | None = None


class Category(ValueObject):
    """Upstream reference data resolved by the enricher."""

    id: str
    name: str


class Entity(ValueObject):
    """A product as held by the upstream catalog."""

    id: str
    title: str
    description: str
    price: float
    quantity: int
    category_id: str | None = None
    image: str | None = None  # public URL
    image_ref: str | None = None  # reference into the upstream blob store
    seller: Seller
    updated_at: UtcDatetime = Field(description="Last modification time upstream")
