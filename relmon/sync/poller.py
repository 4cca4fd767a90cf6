"""Background polling loop and on-demand refresh.

Both paths run the same cycle: aggregate (no locks held), commit to the store
(which diffs against the replaced snapshot), raise the unseen flag if anything
is new, then emit an event. A cycle whose aggregation raises leaves the store
untouched; the loop logs it and waits for the next tick.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from relmon.core.result import Err, Ok, Result
from relmon.gitlab.model import Snapshot
from relmon.sync.aggregate import Aggregate
from relmon.sync.events import (
    RELEASES_LOADED,
    RELEASES_UPDATED,
    EventName,
    ReleaseEvents,
    SnapshotEvent,
)
from relmon.sync.state import CommitResult, SyncStore

__all__ = ["CycleError", "CycleOutcome", "Poller", "PollerPhase"]

logger = logging.getLogger(__name__)

Aggregator = Callable[[], Aggregate]


class PollerPhase(Enum):
    """Where the background loop is in its cycle.

    There is no separate diffing phase: COMMITTING covers the diff, which
    :meth:`SyncStore.commit` computes under the same lock as the swap.
    """

    IDLE = auto()
    FETCHING = auto()
    COMMITTING = auto()


@dataclass(frozen=True, slots=True)
class CycleError:
    """A whole cycle failed; nothing was committed."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class CycleOutcome:
    aggregate: Aggregate
    commit: CommitResult

    @property
    def snapshot(self) -> Snapshot:
        return self.commit.current

    @property
    def new_releases(self) -> Snapshot:
        return self.commit.new_releases


class Poller:
    """Drives fetch → diff → commit cycles for the process lifetime.

    Args:
        store: Shared state; the only thing cycles write to
        events: Where releases-loaded / releases-updated go
        aggregate: Zero-argument callable running one fan-out fetch
        interval: Seconds between scheduled cycles
        startup_delay: Seconds before the initial cycle
    """

    def __init__(
        self,
        *,
        store: SyncStore,
        events: ReleaseEvents,
        aggregate: Aggregator,
        interval: float,
        startup_delay: float = 1.0,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._store = store
        self._events = events
        self._aggregate = aggregate
        self._interval = interval
        self._startup_delay = max(0.0, startup_delay)

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._phase = PollerPhase.IDLE
        self._phase_lock = threading.Lock()
        self._loaded_emitted = False

    @property
    def phase(self) -> PollerPhase:
        """Phase of the background loop (manual refreshes are not tracked)."""
        with self._phase_lock:
            return self._phase

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="relmon-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Ask the loop to exit after the current cycle and wait for it."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def run_cycle(self, *, track_phase: bool = False) -> Result[CycleOutcome, CycleError]:
        """Run one fetch → diff → commit pass without emitting events."""
        if track_phase:
            self._set_phase(PollerPhase.FETCHING)
        try:
            started = time.monotonic()
            try:
                aggregate = self._aggregate()
            except Exception as e:
                logger.exception("Release fetch cycle failed; keeping previous state")
                return Err(CycleError(f"Failed to refresh releases: {e}"))

            if track_phase:
                self._set_phase(PollerPhase.COMMITTING)
            commit = self._store.commit(aggregate.snapshot)
            if commit.new_releases:
                logger.info("Found %d new release(s)", len(commit.new_releases))
                self._store.set_unseen(True)
            logger.debug(
                "Cycle committed %d release(s) in %.2fs",
                len(commit.current),
                time.monotonic() - started,
            )
            return Ok(CycleOutcome(aggregate=aggregate, commit=commit))
        finally:
            if track_phase:
                self._set_phase(PollerPhase.IDLE)

    def refresh_now(self) -> Result[Snapshot, CycleError]:
        """Manual refresh on the caller's thread; returns the committed snapshot."""
        result = self.run_cycle()
        if isinstance(result, Err):
            return result
        self._emit(RELEASES_UPDATED, result.value)
        return Ok(result.value.snapshot)

    def run_scheduled_cycle(self) -> Result[CycleOutcome, CycleError]:
        """One background cycle; the first success emits releases-loaded."""
        result = self.run_cycle(track_phase=True)
        if isinstance(result, Err):
            return result

        with self._phase_lock:
            first = not self._loaded_emitted
            self._loaded_emitted = True
        self._emit(RELEASES_LOADED if first else RELEASES_UPDATED, result.value)
        return result

    def _emit(self, name: EventName, outcome: CycleOutcome) -> None:
        self._events.emit(
            SnapshotEvent(
                name=name,
                snapshot=outcome.snapshot,
                new_releases=outcome.new_releases,
                changed=outcome.commit.changed,
            )
        )

    def _set_phase(self, phase: PollerPhase) -> None:
        with self._phase_lock:
            self._phase = phase

    def _tick(self) -> None:
        try:
            self.run_scheduled_cycle()
        except Exception:
            logger.exception("Release listener failed")

    def _run(self) -> None:
        if self._stop.wait(self._startup_delay):
            return
        logger.info("Starting GitLab releases background task")
        self._tick()

        next_tick = time.monotonic() + self._interval
        while not self._stop.wait(max(0.0, next_tick - time.monotonic())):
            logger.debug("Auto-refreshing GitLab releases")
            self._tick()
            next_tick += self._interval
            now = time.monotonic()
            if next_tick <= now:
                # Missed ticks are skipped, not replayed.
                next_tick = now + self._interval
