"""Health API routes."""

from datetime import datetime

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from catsync.domain.search.port.index import SearchIndex
from catsync.infrastructure.sync.engine import EngineStatus, SyncEngine

router = APIRouter(
    prefix="/health",
    tags=["health"],
    route_class=DishkaRoute,
)


class DeadLetter(BaseModel):
    entity_id: str
    operation: str
    attempts: int
    enqueued_at: datetime


class SyncHealth(BaseModel):
    """Sync engine health."""

    status: str
    search_index: bool
    feed_connected: bool
    events_applied: int
    events_failed: int
    retry_queue_depth: int
    dead_letters: list[DeadLetter]
    bootstrap_error: str | None = None


@router.get("")
async def health(
    engine: FromDishka[SyncEngine],
    index: FromDishka[SearchIndex],
) -> SyncHealth:
    """Report engine status, retry backlog and search index reachability."""
    state = engine.state
    queue = engine.retry_queue
    return SyncHealth(
        status=state.status.value,
        search_index=await index.health(),
        feed_connected=state.status is EngineStatus.RUNNING and state.feed_error is None,
        events_applied=state.events_applied,
        events_failed=state.events_failed,
        retry_queue_depth=len(queue),
        dead_letters=[
            DeadLetter(
                entity_id=item.event.entity_id,
                operation=item.event.operation.value,
                attempts=item.attempts,
                enqueued_at=item.enqueued_at,
            )
            for item in queue.dead_letters
        ],
        bootstrap_error=str(state.bootstrap_error) if state.bootstrap_error else None,
    )
