"""Collapse releases of the same version family to one representative.

The family key is the lowercased tag up to the first ``-v``. Tags without
``-v`` all share the empty family, so a project only ever keeps one of them.
Tags are expected as ``<version>-v<build>``.
"""

from __future__ import annotations

from collections.abc import Iterable

from relmon.gitlab.model import Release

__all__ = ["version_family", "family_key", "filter_latest_releases"]

_FAMILY_SEPARATOR = "-v"


def version_family(tag_name: str) -> str:
    lower = tag_name.lower()
    idx = lower.find(_FAMILY_SEPARATOR)
    if idx == -1:
        return ""
    return lower[:idx]


def family_key(release: Release) -> tuple[str, str]:
    return (release.project_path, version_family(release.tag_name))


def filter_latest_releases(releases: Iterable[Release]) -> tuple[Release, ...]:
    """Keep the first release seen for each (project, family); order is preserved.

    Callers sort newest-first beforehand so the first one is the latest.
    """
    seen: set[tuple[str, str]] = set()
    kept: list[Release] = []
    for release in releases:
        key = family_key(release)
        if key in seen:
            continue
        seen.add(key)
        kept.append(release)
    return tuple(kept)
