"""Render release snapshots to a console."""

from __future__ import annotations

import re
from collections.abc import Collection
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from relmon.output.console import Style, TableRow

if TYPE_CHECKING:
    from relmon.gitlab.model import Release, Snapshot
    from relmon.output.console import ConsoleProtocol

__all__ = [
    "format_created",
    "format_relative_time",
    "release_row",
    "render_snapshot",
    "split_tag",
    "RELEASE_COLUMNS",
]

RELEASE_COLUMNS = (
    "#",
    "",
    "Project",
    "Attribute",
    "Version",
    "Release",
    "Created (UTC)",
    "Age",
    "URL",
)
NEW_MARKER = "NEW"
NOT_AVAILABLE = "N/A"

_VERSION_RE = re.compile(r"v\d+\.\d+(?:\.\d+)?(?:-\w+)?$", re.IGNORECASE | re.ASCII)


def split_tag(tag: str) -> tuple[str, str]:
    """Split a tag into ``(attribute, version)``.

    The version is a trailing ``v1.2`` / ``v1.2.3`` with an optional
    ``-suffix``; the attribute is whatever precedes it, minus trailing
    dashes and underscores. Tags without such a version keep the whole
    tag as the version.

        >>> split_tag("firmware_v1.2.3-rc1")
        ('firmware', 'v1.2.3-rc1')
        >>> split_tag("1.0-v2")
        ('N/A', '1.0-v2')
    """
    if not tag:
        return NOT_AVAILABLE, NOT_AVAILABLE
    match = _VERSION_RE.search(tag)
    if match is None:
        return NOT_AVAILABLE, tag
    attribute = tag[: match.start()].rstrip("-_")
    return attribute or NOT_AVAILABLE, match.group()


def format_created(when: datetime) -> str:
    """Absolute UTC timestamp, e.g. "May 1, 2024, 12:00 PM"."""
    utc = when.astimezone(UTC)
    return f"{utc:%b} {utc.day}, {utc.year}, {utc:%I:%M %p}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'} ago"


def format_relative_time(when: datetime, now: datetime | None = None) -> str:
    """Coarse "x ago" text: days, then hours, then minutes, else "Just now"."""
    now = now or datetime.now(UTC)
    seconds = int((now - when).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return _plural(days, "day")
    if hours > 0:
        return _plural(hours, "hour")
    if minutes > 0:
        return _plural(minutes, "minute")
    return "Just now"


def release_row(
    number: int,
    release: Release,
    *,
    is_new: bool,
    now: datetime | None = None,
) -> TableRow:
    attribute, version = split_tag(release.tag_name)
    return TableRow(
        cells=(
            str(number),
            NEW_MARKER if is_new else "",
            release.project_name,
            attribute,
            version,
            release.name,
            format_created(release.created_at),
            format_relative_time(release.created_at, now),
            release.web_url,
        ),
        style=Style.HIGHLIGHT if is_new else Style.DEFAULT,
    )


def render_snapshot(
    console: ConsoleProtocol,
    snapshot: Snapshot,
    *,
    new_ids: Collection[str] = (),
    title: str = "GitLab releases",
    now: datetime | None = None,
) -> None:
    if not snapshot:
        console.print("No releases found", Style.DIM)
        return
    rows = [
        release_row(i, r, is_new=r.release_id in new_ids, now=now)
        for i, r in enumerate(snapshot, start=1)
    ]
    console.table(title, RELEASE_COLUMNS, rows)
