"""Watcher event wire model and decode errors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# JSON key -> attribute name
_WIRE_FIELDS = {
    "skrClusterID": "skr_cluster_id",
    "body": "component",
    "namespace": "namespace",
    "name": "name",
}


class UnmarshalError(Exception):
    """A request that could not be turned into an event, with the HTTP status to answer."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RoutingError(UnmarshalError):
    status = 400


class BodyReadError(UnmarshalError):
    status = 500


class DecodeError(UnmarshalError):
    status = 500


@dataclass
class WatcherEvent:
    skr_cluster_id: str = ""
    component: str = ""
    namespace: str = ""
    name: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> WatcherEvent:
        """Build from decoded JSON.

        Keys match exactly first, then case-insensitively. Missing keys stay
        empty, unknown keys are ignored.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
        folded: dict[str, Any] = {}
        for key, value in payload.items():
            folded.setdefault(key.lower(), value)
        values: dict[str, str] = {}
        for key, attr in _WIRE_FIELDS.items():
            value = payload[key] if key in payload else folded.get(key.lower())
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"field {key!r} must be a string")
            values[attr] = value
        return cls(**values)
