"""ChangeFeed port - subscription to the upstream change-data-capture stream."""

from abc import abstractmethod
from typing import Awaitable, Callable, Protocol

from catsync.domain.catalog.model.event import ChangeEvent

OnEvent = Callable[[ChangeEvent], Awaitable[None]]
OnError = Callable[[Exception], Awaitable[None]]


class Subscription(Protocol):
    """Handle for an open feed subscription."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering events. Idempotent."""
        ...

    @abstractmethod
    async def wait_closed(self) -> None:
        """Block until the subscription ends (closed or errored)."""
        ...


class ChangeFeed(Protocol):
    """Ordered, at-least-once stream of change events.

    Events are delivered one at a time, in arrival order; ``on_event`` is
    awaited before the next event is delivered. ``on_error`` is informational:
    the feed ends after reporting an error and does not reconnect.
    """

    @abstractmethod
    async def subscribe(self, on_event: OnEvent, on_error: OnError) -> Subscription: ...
