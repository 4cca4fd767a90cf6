"""Outbound events for the presentation layer.

Two events exist, named as the desktop shell expects them:

- ``releases-loaded``: once, after the initial fetch
- ``releases-updated``: after every later successful cycle, scheduled or manual
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from relmon.gitlab.model import Snapshot

__all__ = [
    "RELEASES_LOADED",
    "RELEASES_UPDATED",
    "EventName",
    "ReleaseEvents",
    "SnapshotEvent",
    "SnapshotListener",
]

RELEASES_LOADED = "releases-loaded"
RELEASES_UPDATED = "releases-updated"

EventName = Literal["releases-loaded", "releases-updated"]


@dataclass(frozen=True, slots=True)
class SnapshotEvent:
    """Payload of both events.

    Attributes:
        name: Event name
        snapshot: Committed snapshot
        new_releases: Releases not present in the snapshot it replaced
        changed: Whether the snapshot differs from the one it replaced
    """

    name: EventName
    snapshot: Snapshot
    new_releases: Snapshot = ()
    changed: bool = True


SnapshotListener = Callable[[SnapshotEvent], None]


class ReleaseEvents:
    """Minimal synchronous pub/sub; listeners run on the emitting thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[str, list[SnapshotListener]] = {
            RELEASES_LOADED: [],
            RELEASES_UPDATED: [],
        }

    def on(self, name: EventName, listener: SnapshotListener) -> None:
        if name not in self._listeners:
            raise ValueError(f"unknown event: {name}")
        with self._lock:
            self._listeners[name].append(listener)

    def on_loaded(self, listener: SnapshotListener) -> None:
        self.on(RELEASES_LOADED, listener)

    def on_updated(self, listener: SnapshotListener) -> None:
        self.on(RELEASES_UPDATED, listener)

    def emit(self, event: SnapshotEvent) -> None:
        with self._lock:
            listeners = tuple(self._listeners[event.name])
        for listener in listeners:
            listener(event)
