"""Event sources the reconciliation runtime attaches its dispatch to."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any, Callable, Coroutine

from skr_listener.core.channel import ChannelClosedError, EventChannel, GenericEvent
from skr_listener.utils.logging import get_logger

log = get_logger(__name__)

Handler = Callable[[GenericEvent], Coroutine[Any, Any, None]]


class EventSource(ABC):
    @property
    @abstractmethod
    def source_name(self) -> str: ...

    @abstractmethod
    async def start(self, handler: Handler) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[GenericEvent]: ...


class ChannelSource(EventSource):
    """Feeds events received on an EventChannel to a single handler.

    Runtimes with their own dispatch loop can iterate the source instead
    of calling ``start``; either way there is exactly one consumer.
    """

    def __init__(self, channel: EventChannel, name: str = "skr-events") -> None:
        self._channel = channel
        self._name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def source_name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, handler: Handler) -> None:
        if self.is_running:
            raise RuntimeError(f"event source {self._name} already started")
        self._task = asyncio.create_task(
            self._dispatch(handler),
            name=f"source-{self._name}-{getattr(handler, '__qualname__', type(handler).__name__)}",
        )
        log.info("event_source_started", source=self._name)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        log.info("event_source_stopped", source=self._name)

    def __aiter__(self) -> AsyncIterator[GenericEvent]:
        return self._channel.__aiter__()

    async def _dispatch(self, handler: Handler) -> None:
        while True:
            try:
                event = await self._channel.receive()
            except ChannelClosedError:
                log.info("event_source_channel_closed", source=self._name)
                return
            try:
                await handler(event)
            except Exception:
                log.exception(
                    "handler_error",
                    source=self._name,
                    resource=event.name,
                    namespace=event.namespace,
                )
