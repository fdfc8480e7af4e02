"""Unbuffered rendezvous channel between webhook producers and one consumer."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4


class ChannelClosedError(Exception):
    """Raised by send/receive once the channel has been closed."""


@dataclass(frozen=True)
class ObjectKey:
    name: str
    namespace: str


@dataclass(frozen=True)
class GenericEvent:
    """Change notification for a single resource, consumed by the reconciler."""

    object: ObjectKey
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return self.object.name

    @property
    def namespace(self) -> str:
        return self.object.namespace


class EventChannel:
    """Point-to-point handoff: ``send`` returns only after a receiver took the event.

    Any number of tasks may send concurrently; every event goes to exactly
    one receiver. A send that is cancelled, times out, or is cut off by
    ``close`` withdraws its event, and a withdrawn event is never delivered.
    """

    def __init__(self) -> None:
        self._senders: deque[tuple[GenericEvent, asyncio.Future[None]]] = deque()
        self._receivers: deque[asyncio.Future[None]] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_senders(self) -> int:
        return sum(1 for _, delivered in self._senders if not delivered.done())

    async def send(self, event: GenericEvent, timeout: float | None = None) -> None:
        """Block until a receiver takes ``event``.

        Raises ChannelClosedError if the channel is or becomes closed, and
        asyncio.TimeoutError if ``timeout`` elapses first.
        """
        if self._closed:
            raise ChannelClosedError("event channel is closed")

        delivered: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        item = (event, delivered)
        self._senders.append(item)
        self._wakeup_next_receiver()
        try:
            await asyncio.wait_for(delivered, timeout)
        except asyncio.TimeoutError:
            # A receiver may have taken the event in the same loop iteration
            if delivered.done() and not delivered.cancelled() and delivered.exception() is None:
                return
            raise
        finally:
            if not delivered.done():
                delivered.cancel()
            try:
                self._senders.remove(item)
            except ValueError:
                pass

    async def receive(self) -> GenericEvent:
        """Take the next event from a waiting sender, waiting for one if needed."""
        while True:
            event = self._take()
            if event is not None:
                return event
            if self._closed:
                raise ChannelClosedError("event channel is closed")

            waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._receivers.append(waiter)
            try:
                await waiter
            except asyncio.CancelledError:
                # A wakeup consumed by a cancelled receiver is passed on
                if waiter.done() and not waiter.cancelled():
                    self._wakeup_next_receiver()
                raise
            finally:
                try:
                    self._receivers.remove(waiter)
                except ValueError:
                    pass

    def close(self) -> None:
        """Fail all pending and future sends and release waiting receivers."""
        if self._closed:
            return
        self._closed = True
        while self._senders:
            _, delivered = self._senders.popleft()
            if not delivered.done():
                delivered.set_exception(ChannelClosedError("event channel is closed"))
        while self._receivers:
            waiter = self._receivers.popleft()
            if not waiter.done():
                waiter.set_result(None)

    def __aiter__(self) -> AsyncIterator[GenericEvent]:
        return self

    async def __anext__(self) -> GenericEvent:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None

    def _take(self) -> GenericEvent | None:
        while self._senders:
            event, delivered = self._senders.popleft()
            if not delivered.done():
                delivered.set_result(None)
                return event
        return None

    def _wakeup_next_receiver(self) -> None:
        while self._receivers:
            waiter = self._receivers.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
