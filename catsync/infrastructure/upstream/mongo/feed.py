"""Change feed over a MongoDB change stream on the upstream products collection."""

import asyncio
import logging
from typing import Any

from pymongo.asynchronous.change_stream import AsyncChangeStream
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from catsync.domain.catalog.port.feed import ChangeFeed, OnError, OnEvent, Subscription
from catsync.domain.shared.error import FeedConnectionError
from catsync.infrastructure.upstream.mongo.mappers import change_to_event

logger = logging.getLogger(__name__)


class MongoSubscription(Subscription):
    """A running change stream consumer.

    Closing lets the event being handled finish; the loop notices the close
    within one ``max_await_time_ms`` poll of the stream and then closes it.
    """

    def __init__(
        self,
        stream: AsyncChangeStream[dict[str, Any]],
        on_event: OnEvent,
        on_error: OnError,
    ) -> None:
        self._stream = stream
        self._on_event = on_event
        self._on_error = on_error
        self._closing = False
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="change-feed")

    async def close(self) -> None:
        self._closing = True
        await self.wait_closed()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run(self) -> None:
        try:
            while not self._closing and self._stream.alive:
                change = await self._stream.try_next()
                if change is not None:
                    await self._deliver(change)
            if not self._closing:
                logger.error("Change stream ended (invalidated)")
                await self._on_error(FeedConnectionError("Change stream ended (invalidated)"))
        except PyMongoError as e:
            logger.error(f"Change stream dropped: {e}")
            await self._on_error(FeedConnectionError(f"Change stream dropped: {e}"))
        finally:
            await self._stream.close()
            logger.info("Change stream closed")

    async def _deliver(self, change: dict[str, Any]) -> None:
        # One bad change must never end the subscription
        try:
            event = change_to_event(change)
            if event is None:
                logger.debug(f"Ignoring change of type '{change.get('operationType')}'")
                return
            await self._on_event(event)
        except Exception:
            logger.exception(f"Failed to handle change {change.get('_id')}")


class MongoChangeFeed(ChangeFeed):
    """ChangeFeed backed by ``collection.watch()``.

    No resume token is kept; events missed while not subscribed are healed by
    bootstrap reconciliation on the next start.
    """

    def __init__(
        self, collection: AsyncCollection[dict[str, Any]], max_await_time_ms: int = 1000
    ) -> None:
        self._collection = collection
        self._max_await_time_ms = max_await_time_ms

    async def subscribe(self, on_event: OnEvent, on_error: OnError) -> Subscription:
        """Open the change stream and start delivering events.

        The stream is open when this returns, so no change made after
        subscribe() completes can be missed.

        Raises:
            FeedConnectionError: If the change stream cannot be opened.
        """
        try:
            stream = await self._collection.watch(
                full_document="updateLookup",
                max_await_time_ms=self._max_await_time_ms,
            )
        except PyMongoError as e:
            raise FeedConnectionError(f"Failed to open change stream: {e}") from e

        logger.info("Listening to upstream products for changes")
        subscription = MongoSubscription(stream, on_event, on_error)
        subscription.start()
        return subscription
