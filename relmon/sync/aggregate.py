"""Fetch every configured project and build one display-ordered snapshot."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from relmon.core.result import Err, Result
from relmon.gitlab.fetcher import FetchError, ParsedReleases, fetch_project_releases
from relmon.gitlab.model import Release, Snapshot
from relmon.sync.dedup import filter_latest_releases

if TYPE_CHECKING:
    from relmon.core.config import MonitorConfig
    from relmon.gitlab.http import HttpClient

__all__ = ["Aggregate", "build_snapshot", "fetch_all_releases"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Aggregate:
    """Result of one fan-out fetch.

    Attributes:
        snapshot: Deduplicated releases sorted by project name
        failures: One entry per project that could not be fetched
        skipped: Malformed entries dropped across all projects
        project_count: Number of projects that were queried
    """

    snapshot: Snapshot
    failures: tuple[FetchError, ...] = ()
    skipped: int = 0
    project_count: int = 0

    @property
    def all_failed(self) -> bool:
        return self.project_count > 0 and len(self.failures) == self.project_count


def build_snapshot(releases: list[Release]) -> Snapshot:
    """Newest-first sort, dedup by family, then stable sort by project name."""
    newest_first = sorted(releases, key=lambda r: r.created_at, reverse=True)
    latest = filter_latest_releases(newest_first)
    return tuple(sorted(latest, key=lambda r: r.project_name))


def fetch_all_releases(http: HttpClient, config: MonitorConfig) -> Aggregate:
    """Fetch all configured projects; a failing project contributes nothing.

    Never fails outright: if every project fails the snapshot is simply empty
    and ``Aggregate.all_failed`` is set.
    """
    projects = config.projects
    if not projects:
        return Aggregate(snapshot=())

    def fetch(project_path: str) -> Result[ParsedReleases, FetchError]:
        try:
            return fetch_project_releases(http, config, project_path)
        except Exception as e:
            logger.debug("Unexpected error fetching %s", project_path, exc_info=True)
            return Err(
                FetchError(project_path=project_path, status=0, message=str(e) or type(e).__name__)
            )

    workers = max(1, min(config.max_workers, len(projects)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="relmon-fetch") as pool:
        results = list(pool.map(fetch, projects))

    releases: list[Release] = []
    failures: list[FetchError] = []
    skipped = 0
    for project_path, result in zip(projects, results, strict=True):
        if isinstance(result, Err):
            logger.warning("%s", result.error)
            failures.append(result.error)
            continue

        parsed = result.value
        if parsed.skipped:
            logger.debug("Skipped %d malformed release(s) for %s", parsed.skipped, project_path)
        if not parsed.releases:
            logger.info("No releases found for project: %s", project_path)
        skipped += parsed.skipped
        releases.extend(parsed.releases)

    return Aggregate(
        snapshot=build_snapshot(releases),
        failures=tuple(failures),
        skipped=skipped,
        project_count=len(projects),
    )
