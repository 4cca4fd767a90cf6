"""Shared synchronization state.

:class:`SyncStore` is the only owner of the current/previous snapshots and the
unseen flag. The whole state is one frozen :class:`SyncState` that is replaced
under a lock, so a reader always gets a consistent triple. The lock is held
only for in-memory work; attention listeners run after it is released.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace

from relmon.gitlab.model import EMPTY_SNAPSHOT, Snapshot
from relmon.sync.diff import detect_new_releases

__all__ = ["AttentionListener", "CommitResult", "SyncState", "SyncStore"]

logger = logging.getLogger(__name__)

AttentionListener = Callable[[bool], None]


@dataclass(frozen=True, slots=True)
class SyncState:
    current: Snapshot = EMPTY_SNAPSHOT
    previous: Snapshot = EMPTY_SNAPSHOT
    has_unseen_new_releases: bool = False


@dataclass(frozen=True, slots=True)
class CommitResult:
    """What a single commit did.

    Attributes:
        previous: Snapshot that was current right before this commit
        current: Snapshot committed
        new_releases: Releases of ``current`` not present in ``previous``
    """

    previous: Snapshot
    current: Snapshot
    new_releases: Snapshot

    @property
    def changed(self) -> bool:
        return self.previous != self.current


class SyncStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = SyncState()
        self._listeners: list[AttentionListener] = []

    def subscribe(self, listener: AttentionListener) -> None:
        """Register a callback for unseen-flag transitions."""
        with self._lock:
            self._listeners.append(listener)

    def read_state(self) -> SyncState:
        with self._lock:
            return self._state

    def read_current(self) -> Snapshot:
        with self._lock:
            return self._state.current

    @property
    def has_unseen_new_releases(self) -> bool:
        with self._lock:
            return self._state.has_unseen_new_releases

    def commit(self, snapshot: Snapshot) -> CommitResult:
        """Make ``snapshot`` current and diff it against the snapshot it replaces.

        The diff baseline and the swap happen in one critical section, so two
        concurrent commits each diff against exactly the snapshot they replaced.
        """
        with self._lock:
            baseline = self._state.current
            new_releases = detect_new_releases(snapshot, baseline)
            self._state = replace(self._state, previous=baseline, current=snapshot)
        return CommitResult(previous=baseline, current=snapshot, new_releases=new_releases)

    def set_unseen(self, flag: bool = True) -> None:
        self._set_flag(flag)

    def mark_seen(self) -> None:
        """Clear the unseen flag. Safe to call repeatedly."""
        self._set_flag(False)

    def _set_flag(self, flag: bool) -> None:
        with self._lock:
            transitioned = self._state.has_unseen_new_releases != flag
            if transitioned:
                self._state = replace(self._state, has_unseen_new_releases=flag)
            listeners = tuple(self._listeners)

        if not transitioned:
            return
        logger.debug("Unseen new releases: %s", flag)
        for listener in listeners:
            listener(flag)
