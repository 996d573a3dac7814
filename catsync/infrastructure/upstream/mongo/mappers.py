"""Mappers between upstream MongoDB documents and catalog models.

Upstream documents use the catalog service's own field names (camelCase,
ObjectId keys); everything is converted to plain strings here.
"""

from typing import Any

from bson import ObjectId

from catsync.domain.catalog.model.event import ChangeEvent, Operation
from catsync.domain.catalog.model.value import Category, Entity, Seller


def to_key(entity_id: str) -> ObjectId | str:
    """Upstream key for an entity id (ObjectId when the id looks like one)."""
    return ObjectId(entity_id) if ObjectId.is_valid(entity_id) else entity_id


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def document_to_entity(doc: dict[str, Any]) -> Entity:
    """Convert a products collection document to an Entity."""
    seller = doc.get("seller") or {}
    return Entity(
        id=str(doc["_id"]),
        title=doc["title"],
        description=doc["description"],
        price=doc["price"],
        quantity=doc["quantity"],
        category_id=_str_or_none(doc.get("category_id")),
        image=doc.get("image"),
        image_ref=_str_or_none(doc.get("imageId")),
        seller=Seller(
            id=str(seller["id"]),
            profile_url=seller.get("profileUrl"),
            profile_image_ref=_str_or_none(seller.get("profileImageId")),
        ),
        updated_at=doc["updatedAt"],
    )


def document_to_category(doc: dict[str, Any]) -> Category:
    """Convert a categories collection document to a Category."""
    return Category(id=str(doc["_id"]), name=doc["name"])


def change_to_event(change: dict[str, Any]) -> ChangeEvent | None:
    """Convert a change stream document to a ChangeEvent.

    Returns None for changes that carry nothing to apply: operation types
    other than insert/update/replace/delete, and updates whose document was
    deleted before the full document could be looked up (the delete event
    follows on the stream).
    """
    match change["operationType"]:
        case "insert":
            operation = Operation.INSERT
        case "update" | "replace":
            operation = Operation.UPDATE
        case "delete":
            operation = Operation.DELETE
        case _:
            return None

    entity_id = str(change["documentKey"]["_id"])
    if operation is Operation.DELETE:
        return ChangeEvent(operation=operation, entity_id=entity_id, **_observed(change))

    full_document = change.get("fullDocument")
    if full_document is None:
        return None

    return ChangeEvent(
        operation=operation,
        entity_id=entity_id,
        full_entity=document_to_entity(full_document),
        **_observed(change),
    )


def _observed(change: dict[str, Any]) -> dict[str, Any]:
    # wallTime is only reported by MongoDB 6.0+; otherwise default to receipt time
    wall_time = change.get("wallTime")
    return {"observed_at": wall_time} if wall_time is not None else {}
