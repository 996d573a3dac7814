"""Sync engine value objects."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import Field

from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.shared.model.value import ValueObject


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RetryQueueItem(ValueObject):
    """A failed change event awaiting re-application.

    Attributes:
        event: The change event that failed.
        attempts: Failed applications so far (the first live failure counts as 1).
        enqueued_at: When the event first entered the queue.
    """

    event: ChangeEvent
    attempts: int = Field(default=1, ge=1)
    enqueued_at: datetime = Field(default_factory=_utc_now)

    def retried(self) -> "RetryQueueItem":
        """Copy of this item with one more failed attempt recorded."""
        return self.model_copy(update={"attempts": self.attempts + 1})


class ReconcileOutcome(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class DrainReport:
    """Result of one retry queue drain pass."""

    attempted: int = 0
    succeeded: int = 0
    requeued: int = 0
    dead_lettered: int = 0


@dataclass
class ReconcileReport:
    """Result of one bootstrap reconciliation pass."""

    scanned: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0

    def record(self, outcome: ReconcileOutcome) -> None:
        match outcome:
            case ReconcileOutcome.INSERTED:
                self.inserted += 1
            case ReconcileOutcome.UPDATED:
                self.updated += 1
            case ReconcileOutcome.UNCHANGED:
                self.unchanged += 1
