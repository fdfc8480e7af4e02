"""Tests for the channel-backed event source."""

import asyncio
import functools

import pytest

from skr_listener.core.channel import EventChannel, GenericEvent, ObjectKey
from skr_listener.core.source import ChannelSource, EventSource


def make_event(name="res1", namespace="ns1"):
    return GenericEvent(object=ObjectKey(name=name, namespace=namespace))


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def source(channel):
    return ChannelSource(channel)


class TestChannelSource:
    def test_is_event_source(self, source):
        assert isinstance(source, EventSource)
        assert source.source_name == "skr-events"
        assert source.is_running is False

    async def test_dispatches_to_handler(self, channel, source):
        received = []

        async def handler(event):
            received.append(event)

        await source.start(handler)
        assert source.is_running is True

        event = make_event()
        await asyncio.wait_for(channel.send(event), 1)
        await asyncio.sleep(0)
        assert received == [event]

        await source.stop()
        assert source.is_running is False

    async def test_handler_error_doesnt_stop_dispatch(self, channel, source):
        received = []

        async def handler(event):
            if event.name == "bad":
                raise RuntimeError("boom")
            received.append(event)

        await source.start(handler)
        await asyncio.wait_for(channel.send(make_event("bad")), 1)
        await asyncio.wait_for(channel.send(make_event("good")), 1)
        await asyncio.sleep(0.01)

        assert [e.name for e in received] == ["good"]
        await source.stop()

    async def test_dispatch_ends_when_channel_closes(self, channel, source):
        async def handler(event):
            pass

        await source.start(handler)
        channel.close()
        await asyncio.sleep(0.01)
        assert source.is_running is False
        await source.stop()

    async def test_double_start_raises(self, source):
        async def handler(event):
            pass

        await source.start(handler)
        with pytest.raises(RuntimeError):
            await source.start(handler)
        await source.stop()

    async def test_stop_without_start(self, source):
        await source.stop()
        assert source.is_running is False

    async def test_async_iteration(self, channel, source):
        received = []

        async def consume():
            async for event in source:
                received.append(event)

        consumer = asyncio.create_task(consume())
        await asyncio.wait_for(channel.send(make_event("x")), 1)
        channel.close()
        await asyncio.wait_for(consumer, 1)
        assert [e.name for e in received] == ["x"]

    async def test_partial_handler(self, channel, source):
        received = []

        async def handler(tag, event):
            received.append((tag, event.name))

        await source.start(functools.partial(handler, "x"))
        await asyncio.wait_for(channel.send(make_event("res1")), 1)
        await asyncio.sleep(0)

        assert received == [("x", "res1")]
        await source.stop()
