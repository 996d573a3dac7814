"""ChangeEvent - one insert/update/delete notification from the upstream change feed."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import Field, model_validator
from typing_extensions import Self

from catsync.domain.catalog.model.value import Entity
from catsync.domain.shared.model.value import ValueObject


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Operation(StrEnum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(ValueObject):
    """An immutable change notification for a single entity.

    Insert and update events carry the full current entity document.
    Delete events carry only the entity key.
    """

    operation: Operation
    entity_id: str
    full_entity: Entity | None = None
    observed_at: datetime = Field(default_factory=_utc_now)

    @model_validator(mode="after")
    def check_payload(self) -> Self:
        if self.operation is Operation.DELETE:
            if self.full_entity is not None:
                raise ValueError("delete events must not carry an entity")
            return self
        if self.full_entity is None:
            raise ValueError(f"{self.operation} events require the full entity")
        if self.full_entity.id != self.entity_id:
            raise ValueError(
                f"entity id mismatch: event '{self.entity_id}', "
                f"entity '{self.full_entity.id}'"
            )
        return self

    @classmethod
    def insert(cls, entity: Entity) -> "ChangeEvent":
        return cls(operation=Operation.INSERT, entity_id=entity.id, full_entity=entity)

    @classmethod
    def update(cls, entity: Entity) -> "ChangeEvent":
        return cls(operation=Operation.UPDATE, entity_id=entity.id, full_entity=entity)

    @classmethod
    def delete(cls, entity_id: str) -> "ChangeEvent":
        return cls(operation=Operation.DELETE, entity_id=entity_id)
