"""Event channel and event sources."""

from .channel import ChannelClosedError, EventChannel, GenericEvent, ObjectKey
from .source import ChannelSource, EventSource

__all__ = [
    "ChannelClosedError",
    "EventChannel",
    "GenericEvent",
    "ObjectKey",
    "ChannelSource",
    "EventSource",
]
