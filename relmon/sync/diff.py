from __future__ import annotations

from collections.abc import Iterable

from relmon.gitlab.model import Release, Snapshot

__all__ = ["detect_new_releases"]


def detect_new_releases(current: Iterable[Release], previous: Iterable[Release]) -> Snapshot:
    """Releases in ``current`` whose (project_path, tag_name) is absent from ``previous``.

    Matching is on the exact tag, finer than the family key used for dedup, so
    a new build of an existing family still counts as new. Order follows
    ``current``.
    """
    known = {release.key for release in previous}
    return tuple(release for release in current if release.key not in known)
