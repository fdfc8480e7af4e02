"""Watcher webhook ingestion."""

from .server import SKREventsListener, start_listener_component

__all__ = ["SKREventsListener", "start_listener_component"]
