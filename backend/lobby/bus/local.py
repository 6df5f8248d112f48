"""In-process broadcast channel with per-subscriber event queues."""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import TYPE_CHECKING, Any

import structlog

from lobby.bus.protocol import BusSubscription, MessageBus

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lobby.bus.protocol import BusHandler

logger = structlog.get_logger()


class Subscription(BusSubscription):
    """One participant's attachment to a LocalBus.

    Deliveries go into a private queue drained by a single pump task, so the
    handler runs to completion for each message and never overlaps itself.
    The pump starts lazily on first delivery because subscribing can happen
    outside a running event loop.
    """

    def __init__(self, bus: LocalBus, handler: BusHandler) -> None:
        self.subscription_id = str(uuid.uuid4())
        self._bus = bus
        self._handler = handler
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._closed = False
        self._pump_task: asyncio.Task[None] | None = None
        self._unfinished = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_pending(self) -> bool:
        return self._unfinished > 0

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self)
        if self._pump_task is not None and not self._pump_task.done():
            self._enqueue(None)

    async def wait_idle(self) -> None:
        await self._idle.wait()

    def _deliver(self, payload: dict[str, Any]) -> None:
        if self._closed:
            return
        self._enqueue(payload)
        if self._pump_task is None:
            self._pump_task = asyncio.get_running_loop().create_task(self._pump())
            self._bus._pumps.add(self)

    def _enqueue(self, payload: dict[str, Any] | None) -> None:
        self._unfinished += 1
        self._idle.clear()
        self._queue.put_nowait(payload)

    def _task_done(self) -> None:
        self._unfinished -= 1
        if self._unfinished == 0:
            self._idle.set()

    async def _pump(self) -> None:
        try:
            while True:
                payload = await self._queue.get()
                try:
                    if payload is None:
                        return
                    if self._closed:
                        continue
                    await self._handler(payload)
                except Exception:
                    logger.exception("bus handler failed", channel=self._bus.name, message_type=payload.get("type"))
                finally:
                    self._task_done()
        finally:
            self._bus._pumps.discard(self)


class LocalBus(MessageBus):
    """Same-origin broadcast channel identified by name.

    Messages are JSON-encoded once on publish and every receiver gets its
    own decoded copy, so no subscriber can mutate what another one sees.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Subscription] = []
        self._pumps: set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, handler: BusHandler) -> Subscription:
        subscription = Subscription(self, handler)
        self._subscribers.append(subscription)
        logger.debug("bus subscribed", channel=self.name, subscription_id=subscription.subscription_id)
        return subscription

    async def publish(self, message: Mapping[str, Any], *, sender: BusSubscription | None = None) -> None:
        payload = json.dumps(dict(message))
        for subscription in list(self._subscribers):
            if subscription is sender:
                continue
            subscription._deliver(json.loads(payload))

    async def drain(self) -> None:
        """Wait until no subscription has undelivered or in-progress messages.

        Handlers may publish while running, so keep waiting until a full pass
        finds every pump idle.
        """
        while busy := [s for s in self._pumps if s.has_pending]:
            await asyncio.gather(*(s.wait_idle() for s in busy))

    async def close(self) -> None:
        """Close every subscription and wait for their pump tasks to exit."""
        tasks = [s._pump_task for s in self._subscribers if s._pump_task is not None]
        for subscription in list(self._subscribers):
            subscription.close()
        await asyncio.gather(*tasks)
        logger.debug("bus closed", channel=self.name)

    def _detach(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            logger.debug("bus unsubscribed", channel=self.name, subscription_id=subscription.subscription_id)


class ChannelHub:
    """All channels reachable from one origin.

    ``hub.channel(name)`` always returns the same LocalBus for a name; buses
    on different hubs never see each other's messages.
    """

    def __init__(self) -> None:
        self._channels: dict[str, LocalBus] = {}

    def channel(self, name: str) -> LocalBus:
        if name not in self._channels:
            self._channels[name] = LocalBus(name)
        return self._channels[name]

    async def drain(self) -> None:
        for bus in list(self._channels.values()):
            await bus.drain()

    async def close(self) -> None:
        """Deliver what is still queued, then shut every channel down."""
        await self.drain()
        for bus in list(self._channels.values()):
            await bus.close()
        self._channels.clear()
