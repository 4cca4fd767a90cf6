"""Release synchronization engine: aggregate, dedup, diff, state, polling."""

from .aggregate import Aggregate, build_snapshot, fetch_all_releases
from .dedup import filter_latest_releases, version_family
from .diff import detect_new_releases
from .events import RELEASES_LOADED, RELEASES_UPDATED, ReleaseEvents, SnapshotEvent
from .poller import CycleError, CycleOutcome, Poller, PollerPhase
from .state import CommitResult, SyncState, SyncStore

__all__ = [
    "Aggregate",
    "CommitResult",
    "CycleError",
    "CycleOutcome",
    "Poller",
    "PollerPhase",
    "RELEASES_LOADED",
    "RELEASES_UPDATED",
    "ReleaseEvents",
    "SnapshotEvent",
    "SyncState",
    "SyncStore",
    "build_snapshot",
    "detect_new_releases",
    "fetch_all_releases",
    "filter_latest_releases",
    "version_family",
]
