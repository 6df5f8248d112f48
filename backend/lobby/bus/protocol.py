"""Abstract publish/subscribe transport used by the lobby."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    BusHandler = Callable[[dict[str, Any]], Awaitable[None]]


class BusSubscription(ABC):
    """Handle for one attached handler. Closing it silences the handler."""

    @property
    @abstractmethod
    def closed(self) -> bool: ...

    @abstractmethod
    def close(self) -> None:
        """Detach the handler. Messages already queued for it are dropped."""
        ...

    async def __aenter__(self) -> BusSubscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class MessageBus(ABC):
    """
    Unordered fan-out channel.

    Every published message reaches every other current subscriber, never
    the publisher itself. There is no acknowledgment, no cross-subscriber
    ordering and no persistence: a late subscriber never sees earlier
    messages. Message handling logic is written against this interface so
    it can be tested without a real browser channel.
    """

    @abstractmethod
    def subscribe(self, handler: BusHandler) -> BusSubscription: ...

    @abstractmethod
    async def publish(self, message: Mapping[str, Any], *, sender: BusSubscription | None = None) -> None:
        """
        Fan the message out to all subscribers except ``sender``.
        """
        ...
