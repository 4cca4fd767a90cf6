"""Tests for sync/poller.py - cycles, events and the background loop."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from relmon.core.result import Err, Ok
from relmon.gitlab.model import Release, Snapshot
from relmon.sync.aggregate import Aggregate
from relmon.sync.events import RELEASES_LOADED, RELEASES_UPDATED, ReleaseEvents, SnapshotEvent
from relmon.sync.poller import Poller, PollerPhase
from relmon.sync.state import SyncStore

_T0 = datetime(2024, 5, 1, tzinfo=UTC)


def _release(path: str, tag: str) -> Release:
    return Release(
        project_name=path.rsplit("/", 1)[-1],
        project_path=path,
        tag_name=tag,
        name=tag,
        description="",
        created_at=_T0,
        released_at=None,
        web_url="",
    )


class _Sequence:
    """Aggregator returning the queued snapshots in turn, repeating the last one."""

    def __init__(self, *snapshots: Snapshot | Exception) -> None:
        self._items = list(snapshots)
        self.calls = 0

    def __call__(self) -> Aggregate:
        item = self._items[min(self.calls, len(self._items) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return Aggregate(snapshot=item, project_count=1)


def _poller(
    aggregate: Callable[[], Aggregate],
    *,
    interval: float = 60.0,
    startup_delay: float = 0.0,
) -> tuple[Poller, SyncStore, list[SnapshotEvent]]:
    store = SyncStore()
    events = ReleaseEvents()
    seen: list[SnapshotEvent] = []
    events.on_loaded(seen.append)
    events.on_updated(seen.append)
    poller = Poller(
        store=store,
        events=events,
        aggregate=aggregate,
        interval=interval,
        startup_delay=startup_delay,
    )
    return poller, store, seen


A1 = _release("g/a", "1.0")
A2 = _release("g/a", "2.0")


class TestRunCycle:
    def test_commits_and_flags_new(self) -> None:
        poller, store, seen = _poller(_Sequence((A1,)))

        result = poller.run_cycle()

        assert isinstance(result, Ok)
        assert result.value.snapshot == (A1,)
        assert result.value.new_releases == (A1,)
        assert store.read_current() == (A1,)
        assert store.has_unseen_new_releases
        assert seen == []

    def test_no_new_releases_leaves_flag(self) -> None:
        poller, store, _ = _poller(_Sequence((A1,), (A1,)))
        poller.run_cycle()
        store.mark_seen()

        poller.run_cycle()

        assert not store.has_unseen_new_releases
        assert store.read_state().previous == (A1,)

    def test_hard_failure_leaves_state_untouched(self) -> None:
        """An exception from aggregation commits nothing."""
        poller, store, seen = _poller(_Sequence((A1,), RuntimeError("boom")))
        poller.run_cycle()
        before = store.read_state()

        result = poller.run_cycle()

        assert isinstance(result, Err)
        assert "boom" in str(result.error)
        assert store.read_state() == before
        assert seen == []

    def test_phase_returns_to_idle(self) -> None:
        phases: list[PollerPhase] = []
        holder: list[Poller] = []

        def aggregate() -> Aggregate:
            phases.append(holder[0].phase)
            return Aggregate(snapshot=())

        poller, _, _ = _poller(aggregate)
        holder.append(poller)

        poller.run_cycle(track_phase=True)

        assert phases == [PollerPhase.FETCHING]
        assert poller.phase is PollerPhase.IDLE

    def test_diff_and_flag_happen_while_committing(self) -> None:
        """There is no separate diffing phase; the flag is raised during COMMITTING."""
        poller, store, _ = _poller(_Sequence((A1,)))
        phases: list[PollerPhase] = []
        store.subscribe(lambda flag: phases.append(poller.phase))

        poller.run_cycle(track_phase=True)

        assert phases == [PollerPhase.COMMITTING]
        assert set(PollerPhase) == {
            PollerPhase.IDLE,
            PollerPhase.FETCHING,
            PollerPhase.COMMITTING,
        }

    def test_invalid_interval(self) -> None:
        with pytest.raises(ValueError, match="interval"):
            _poller(_Sequence(()), interval=0)


class TestScheduledCycles:
    def test_first_success_emits_loaded_then_updated(self) -> None:
        poller, _, seen = _poller(_Sequence((A1,), (A1, A2)))

        poller.run_scheduled_cycle()
        poller.run_scheduled_cycle()

        assert [e.name for e in seen] == [RELEASES_LOADED, RELEASES_UPDATED]
        assert seen[0].snapshot == (A1,)
        assert seen[1].new_releases == (A2,)
        assert seen[1].changed

    def test_failed_first_cycle_defers_loaded(self) -> None:
        poller, _, seen = _poller(_Sequence(RuntimeError("down"), (A1,)))

        assert isinstance(poller.run_scheduled_cycle(), Err)
        poller.run_scheduled_cycle()

        assert [e.name for e in seen] == [RELEASES_LOADED]

    def test_unchanged_cycle_reports_not_changed(self) -> None:
        poller, _, seen = _poller(_Sequence((A1,)))

        poller.run_scheduled_cycle()
        poller.run_scheduled_cycle()

        assert seen[1].name == RELEASES_UPDATED
        assert not seen[1].changed
        assert seen[1].new_releases == ()


class TestRefreshNow:
    def test_emits_updated_and_returns_snapshot(self) -> None:
        poller, _, seen = _poller(_Sequence((A1, A2)))

        result = poller.refresh_now()

        assert result == Ok((A1, A2))
        assert [e.name for e in seen] == [RELEASES_UPDATED]

    def test_error_propagates(self) -> None:
        poller, store, seen = _poller(_Sequence(RuntimeError("no network")))

        result = poller.refresh_now()

        assert isinstance(result, Err)
        assert str(result.error).startswith("Failed to refresh releases")
        assert store.read_current() == ()
        assert seen == []


class TestBackgroundLoop:
    """Tests for start/stop with short intervals."""

    def test_initial_then_periodic_cycles(self) -> None:
        aggregate = _Sequence((A1,), (A1, A2))
        poller, _, seen = _poller(aggregate, interval=0.01)
        updated = threading.Event()
        poller._events.on_updated(lambda e: updated.set())

        poller.start()
        try:
            assert updated.wait(5.0)
        finally:
            poller.stop(timeout=5.0)

        assert not poller.running
        assert seen[0].name == RELEASES_LOADED
        assert aggregate.calls >= 2

    def test_stop_during_startup_delay(self) -> None:
        aggregate = _Sequence((A1,))
        poller, _, seen = _poller(aggregate, startup_delay=30.0)

        poller.start()
        poller.stop(timeout=5.0)

        assert not poller.running
        assert aggregate.calls == 0
        assert seen == []

    def test_listener_error_does_not_kill_loop(self) -> None:
        aggregate = _Sequence((A1,))
        poller, _, _ = _poller(aggregate, interval=0.01)
        second = threading.Event()

        def explode(event: SnapshotEvent) -> None:
            raise RuntimeError("listener bug")

        poller._events.on_loaded(explode)
        poller._events.on_updated(lambda e: second.set())

        poller.start()
        try:
            assert second.wait(5.0)
        finally:
            poller.stop(timeout=5.0)

    def test_start_is_idempotent(self) -> None:
        poller, _, _ = _poller(_Sequence(()), startup_delay=30.0)

        poller.start()
        thread = poller._thread
        poller.start()

        assert poller._thread is thread
        poller.stop(timeout=5.0)
