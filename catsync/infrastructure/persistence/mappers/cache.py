"""Mappers between CacheRecord and product_cache rows."""

from typing import Any

from catsync.domain.cache.model.record import CacheRecord
from catsync.domain.catalog.model.value import Seller


def record_to_dict(record: CacheRecord) -> dict[str, Any]:
    """Convert a CacheRecord to a product_cache row."""
    return {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "category_id": record.category_id,
        "category": record.category,
        "price": record.price,
        "quantity": record.quantity,
        "image": record.image,
        "image_ref": record.image_ref,
        "seller": record.seller.model_dump(mode="json"),
        "updated_at": record.updated_at,
    }


def row_to_record(row: dict[str, Any]) -> CacheRecord:
    """Convert a product_cache row to a CacheRecord."""
    return CacheRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category_id=row["category_id"],
        category=row["category"],
        price=row["price"],
        quantity=row["quantity"],
        image=row["image"],
        image_ref=row["image_ref"],
        seller=Seller.model_validate(row["seller"]),
        updated_at=row["updated_at"],  # naive on SQLite; CacheRecord normalizes to UTC
    )
