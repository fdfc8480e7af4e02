"""SKR events listener: aiohttp server feeding the event channel."""

from __future__ import annotations

import asyncio
from typing import Any

from aiohttp import web

from skr_listener.config import ListenerConfig
from skr_listener.core.channel import ChannelClosedError, EventChannel
from skr_listener.core.source import ChannelSource
from skr_listener.utils.logging import get_logger
from skr_listener.webhooks.handlers import add_event_route, unmarshal_skr_event
from skr_listener.webhooks.models import UnmarshalError

log = get_logger(__name__)


class SKREventsListener:
    """Receives watcher events over HTTP and hands them to the event channel.

    Two ways to drive it: ``run(stop_event)`` blocks until the stop event is
    set (or the task is cancelled) and then shuts down, which is what a
    supervisor of long-running services expects; ``start()``/``stop()`` are
    for embedders that manage components in pairs.
    """

    def __init__(self, config: ListenerConfig, channel: EventChannel | None = None) -> None:
        self._config = config
        self._bind_channel(channel if channel is not None else EventChannel())
        self._runner: web.AppRunner | None = None

    @property
    def channel(self) -> EventChannel:
        return self._channel

    @property
    def source(self) -> ChannelSource:
        return self._source

    @property
    def addresses(self) -> list[Any]:
        """Bound socket addresses; empty until serving."""
        if self._runner is None:
            return []
        return self._runner.addresses

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self, stop_event: asyncio.Event) -> None:
        await self.start()
        try:
            await stop_event.wait()
            log.info("skr_listener_shutting_down", reason="stop event set")
        finally:
            await self.stop()

    async def start(self) -> None:
        if self._runner is not None:
            raise RuntimeError("SKR events listener already started")
        if self._channel.closed:
            # Restart after stop(): consumers attach to the new source
            self._bind_channel(EventChannel())
        self._runner = web.AppRunner(
            self._build_app(), shutdown_timeout=self._config.shutdown_timeout
        )
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        log.info(
            "skr_listener_starting",
            bind=self._config.bind,
            port=self._config.port,
            component=self._config.component_name,
        )
        try:
            await site.start()
        except OSError:
            # Not fatal to the lifecycle: the listener stays up without serving
            log.exception(
                "webserver_startup_failed",
                bind=self._config.bind,
                port=self._config.port,
            )
            return
        log.info("skr_listener_started", addresses=self._runner.addresses)

    async def stop(self) -> None:
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        # Sends still waiting for a consumer fail fast with 503
        self._channel.close()
        await runner.cleanup()
        log.info("skr_listener_stopped")

    def _bind_channel(self, channel: EventChannel) -> None:
        self._channel = channel
        self._source = ChannelSource(
            channel, name=f"{self._config.component_name or 'skr'}-events"
        )

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application()
        add_event_route(app.router, self._handle_skr_event, self._config.component_name)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_skr_event(self, request: web.Request) -> web.Response:
        log.info("skr_event_received", path=request.path)

        try:
            event = await unmarshal_skr_event(request)
        except UnmarshalError as exc:
            log.error("skr_event_unmarshal_failed", error=exc.message, status=exc.status)
            return web.Response(status=exc.status, text=exc.message)

        try:
            await self._channel.send(event, timeout=self._config.send_timeout)
        except ChannelClosedError:
            log.warning("skr_event_dropped", resource=event.name, reason="channel closed")
            return web.Response(status=503, text="listener is shutting down")
        except asyncio.TimeoutError:
            log.warning("skr_event_dropped", resource=event.name, reason="send timed out")
            return web.Response(status=503, text="no consumer accepted the event in time")

        log.info(
            "skr_event_dispatched",
            resource=event.name,
            namespace=event.namespace,
            event_id=event.id,
        )
        return web.Response(status=200)


def start_listener_component(
    config: ListenerConfig, stop_event: asyncio.Event
) -> tuple[asyncio.Task[None], ChannelSource]:
    """Run a listener in the background and return its task and event source."""
    listener = SKREventsListener(config)
    task = asyncio.create_task(listener.run(stop_event), name="skr-events-listener")
    task.add_done_callback(_log_listener_exit)
    return task, listener.source


def _log_listener_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("skr_listener_failed", error=str(exc), exc_info=exc)
