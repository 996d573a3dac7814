"""Unit tests for RetryQueue."""

from unittest.mock import AsyncMock

import pytest

from catsync.domain.catalog.model.event import ChangeEvent
from catsync.domain.shared.error import StoreWriteError, SyncError
from catsync.domain.sync.service.retry_queue import RetryQueue


def _failing_writer(*failures: bool) -> AsyncMock:
    """Writer whose reapply() fails (True) or succeeds (False) per call, in order."""
    writer = AsyncMock()
    results = iter(
        [SyncError("p", StoreWriteError("down")) if failed else None for failed in failures]
    )
    writer.reapply.side_effect = lambda *_: next(results)
    return writer


class TestRetryQueueEnqueue:
    @pytest.mark.asyncio
    async def test_events_are_not_deduplicated(self, make_entity):
        queue = RetryQueue()
        event = ChangeEvent.update(make_entity("p1"))

        await queue.enqueue(event)
        await queue.enqueue(event)

        assert len(queue) == 2

    @pytest.mark.asyncio
    async def test_first_failure_counts_as_one_attempt(self, make_entity):
        queue = RetryQueue()

        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))

        assert queue.pending()[0].attempts == 1

    @pytest.mark.asyncio
    async def test_single_attempt_limit_dead_letters_immediately(self, make_entity):
        queue = RetryQueue(max_attempts=1)

        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))

        assert len(queue) == 0
        assert [item.event.entity_id for item in queue.dead_letters] == ["p1"]

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            RetryQueue(max_attempts=0)


class TestRetryQueueDrain:
    @pytest.mark.asyncio
    async def test_empty_drain_does_nothing(self):
        queue = RetryQueue()
        writer = _failing_writer()

        report = await queue.drain_and_retry(writer)

        assert report.attempted == 0
        writer.reapply.assert_not_called()

    @pytest.mark.asyncio
    async def test_successful_retries_leave_the_queue(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        await queue.enqueue(ChangeEvent.delete("p2"))
        writer = _failing_writer(False, False)

        report = await queue.drain_and_retry(writer)

        assert report.attempted == 2
        assert report.succeeded == 2
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_items_are_retried_in_enqueue_order(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        await queue.enqueue(ChangeEvent.delete("p1"))
        writer = _failing_writer(False, False)

        await queue.drain_and_retry(writer)

        applied = [call.args[0].operation for call in writer.reapply.await_args_list]
        assert applied == ["insert", "delete"]

    @pytest.mark.asyncio
    async def test_failed_retry_is_requeued_with_attempt_count(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        writer = _failing_writer(True)

        report = await queue.drain_and_retry(writer)

        assert report.requeued == 1
        assert len(queue) == 1
        assert queue.pending()[0].attempts == 2

    @pytest.mark.asyncio
    async def test_each_item_is_attempted_once_per_drain(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        writer = _failing_writer(True, True)

        await queue.drain_and_retry(writer)

        assert writer.reapply.await_count == 1

    @pytest.mark.asyncio
    async def test_enqueue_during_drain_lands_in_next_batch(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        late = ChangeEvent.insert(make_entity("p2"))

        async def apply(event):
            await queue.enqueue(late)
            return None

        writer = AsyncMock()
        writer.reapply.side_effect = apply

        report = await queue.drain_and_retry(writer)

        assert report.attempted == 1
        assert [item.event.entity_id for item in queue.pending()] == ["p2"]

    @pytest.mark.asyncio
    async def test_retries_forever_by_default(self, make_entity):
        queue = RetryQueue()
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        writer = _failing_writer(*([True] * 10))

        for _ in range(10):
            await queue.drain_and_retry(writer)

        assert len(queue) == 1
        assert queue.pending()[0].attempts == 11
        assert queue.dead_letters == []

    @pytest.mark.asyncio
    async def test_exhausted_items_are_dead_lettered(self, make_entity):
        queue = RetryQueue(max_attempts=3)
        await queue.enqueue(ChangeEvent.insert(make_entity("p1")))
        writer = _failing_writer(True, True)

        first = await queue.drain_and_retry(writer)
        second = await queue.drain_and_retry(writer)

        assert first.requeued == 1
        assert second.dead_lettered == 1
        assert len(queue) == 0
        assert queue.dead_letters[0].attempts == 3
