"""SKR listener entry point: runs the listener standalone until signalled."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from skr_listener.config import Settings, load_settings
from skr_listener.core.channel import GenericEvent
from skr_listener.utils.logging import get_logger, setup_logging
from skr_listener.webhooks.server import SKREventsListener

log = get_logger(__name__)


async def _log_event(event: GenericEvent) -> None:
    log.info(
        "skr_event_consumed",
        resource=event.name,
        namespace=event.namespace,
        event_id=event.id,
    )


async def run(settings: Settings) -> None:
    listener = SKREventsListener(settings.listener)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    # Without a reconciler attached, drain the channel so senders get their 200
    await listener.source.start(_log_event)
    try:
        await listener.run(stop_event)
    finally:
        await listener.source.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option(
    "--component",
    default=None,
    help="Component path segment to accept (empty string accepts any)",
)
def cli(
    config_path: str | None,
    log_level: str | None,
    port: int | None,
    component: str | None,
) -> None:
    """Start the SKR events listener."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if port is not None:
        settings.listener.port = port
    if component is not None:
        settings.listener.component_name = component
    setup_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        component=settings.listener.component_name,
    )
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
