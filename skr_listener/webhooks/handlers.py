"""Versioned route contract and watcher event decoding."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Protocol

from aiohttp import web

from skr_listener.core.channel import GenericEvent, ObjectKey
from skr_listener.webhooks.models import (
    BodyReadError,
    DecodeError,
    RoutingError,
    WatcherEvent,
)

PARAM_CONTRACT_VERSION = "version"
PARAM_COMPONENT = "component"

# aiohttp's default segment pattern needs one character; an empty version
# has to reach the decoder so it can be answered with 400.
_VERSION_SEGMENT = f"{{{PARAM_CONTRACT_VERSION}:[^/]*}}"
_COMPONENT_SEGMENT = f"{{{PARAM_COMPONENT}}}"


class EventRequest(Protocol):
    @property
    def match_info(self) -> Mapping[str, str]: ...

    async def read(self) -> bytes: ...


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

def event_path(component_name: str = "") -> str:
    """Route template for watcher events.

    A non-empty ``component_name`` becomes a literal segment; otherwise the
    segment is a parameter and any producer name matches.
    """
    component = component_name.strip("/") or _COMPONENT_SEGMENT
    return f"/v{_VERSION_SEGMENT}/{component}/event"


def add_event_route(
    router: web.UrlDispatcher,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
    component_name: str = "",
) -> web.AbstractRoute:
    return router.add_post(event_path(component_name), handler)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def contract_version(match_info: Mapping[str, str]) -> str:
    version = match_info.get(PARAM_CONTRACT_VERSION)
    if version is None:
        raise RoutingError("contract version could not be parsed")
    if version == "":
        raise RoutingError("contract version cannot be empty")
    return version


def decode_watcher_event(body: bytes) -> WatcherEvent:
    # Invalid UTF-8 inside strings becomes U+FFFD instead of failing the request
    try:
        payload: Any = json.loads(body.decode("utf-8", errors="replace"))
        return WatcherEvent.from_payload(payload)
    except (ValueError, RecursionError) as exc:
        raise DecodeError("could not unmarshal watcher event") from exc


async def unmarshal_skr_event(request: EventRequest) -> GenericEvent:
    """Turn a watcher request into a GenericEvent, or raise an UnmarshalError.

    The version is checked before the body is touched.
    """
    contract_version(request.match_info)

    try:
        body = await request.read()
    except Exception as exc:
        raise BodyReadError("could not read request body") from exc

    watcher_event = decode_watcher_event(body)
    return GenericEvent(
        object=ObjectKey(name=watcher_event.name, namespace=watcher_event.namespace)
    )
