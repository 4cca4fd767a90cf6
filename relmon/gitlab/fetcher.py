"""Fetch and parse the releases of a single GitLab project.

Parsing is lenient: an entry missing ``tag_name``, ``name`` or a
valid ``created_at`` is dropped and counted, and never fails the fetch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from relmon.core.result import Err, Ok, Result
from relmon.core.structured import as_obj_list, as_str_dict, get_raw_str, get_table
from relmon.gitlab.model import Release, project_name_of

if TYPE_CHECKING:
    from collections.abc import Iterable

    from relmon.core.config import MonitorConfig
    from relmon.gitlab.http import HttpClient

__all__ = [
    "FetchError",
    "ParsedReleases",
    "fetch_project_releases",
    "parse_release",
    "parse_releases",
    "parse_rfc3339",
    "releases_url",
]

TOKEN_HEADER = "PRIVATE-TOKEN"

_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<hm>\d{2}:\d{2}):(?P<sec>\d{2})"
    r"(?P<frac>\.\d+)?(?P<offset>Z|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True, slots=True)
class FetchError:
    """Releases for one project could not be fetched.

    Attributes:
        project_path: Project the request was for
        status: HTTP status code, 0 for transport and decode failures
        message: Underlying error text
    """

    project_path: str
    status: int
    message: str

    def __str__(self) -> str:
        prefix = f"Failed to fetch releases for {self.project_path}"
        if self.status:
            return f"{prefix}: HTTP {self.status} {self.message}"
        return f"{prefix}: {self.message}"


@dataclass(frozen=True, slots=True)
class ParsedReleases:
    """Outcome of the filtering parse step."""

    releases: tuple[Release, ...]
    skipped: int = 0


def releases_url(base_url: str, project_path: str) -> str:
    """Releases endpoint for a project; the path is encoded as a single segment."""
    encoded = quote(project_path, safe="")
    return f"{base_url.rstrip('/')}/api/v4/projects/{encoded}/releases"


def parse_rfc3339(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Date, time and offset are all required; the separator may be ``T`` or a
    space. A leap second (``:60``) is clamped to ``:59``. Returns None instead
    of raising.
    """
    match = _RFC3339_RE.match(value.strip().upper())
    if match is None:
        return None
    seconds = "59" if match["sec"] == "60" else match["sec"]
    iso = f"{match['date']}T{match['hm']}:{seconds}{match['frac'] or ''}{match['offset']}"
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        return None
    return parsed.astimezone(UTC)


def parse_release(project_path: str, entry: object) -> Release | None:
    """Build a Release from one API entry, or None if required fields are missing."""
    data = as_str_dict(entry)
    if data is None:
        return None

    tag_name = get_raw_str(data, "tag_name")
    name = get_raw_str(data, "name")
    created_raw = get_raw_str(data, "created_at")
    if tag_name is None or name is None or created_raw is None:
        return None

    created_at = parse_rfc3339(created_raw)
    if created_at is None:
        return None

    released_raw = get_raw_str(data, "released_at")
    released_at = parse_rfc3339(released_raw) if released_raw is not None else None

    links = get_table(data, "_links") or {}

    return Release(
        project_name=project_name_of(project_path),
        project_path=project_path,
        tag_name=tag_name,
        name=name,
        description=get_raw_str(data, "description") or "",
        created_at=created_at,
        released_at=released_at,
        web_url=get_raw_str(links, "self") or "",
    )


def parse_releases(project_path: str, entries: Iterable[object]) -> ParsedReleases:
    releases: list[Release] = []
    skipped = 0
    for entry in entries:
        release = parse_release(project_path, entry)
        if release is None:
            skipped += 1
            continue
        releases.append(release)
    return ParsedReleases(releases=tuple(releases), skipped=skipped)


def fetch_project_releases(
    http: HttpClient,
    config: MonitorConfig,
    project_path: str,
) -> Result[ParsedReleases, FetchError]:
    """Fetch every release currently published for ``project_path``.

    Args:
        http: HTTP client to use
        config: Supplies the base URL and the API token
        project_path: Project path, e.g. "group/subgroup/app" (encoded here)

    Returns:
        Ok with the parsed releases and the number of skipped entries, or
        Err(FetchError) for transport errors, non-success statuses and
        undecodable bodies
    """
    url = releases_url(config.base_url, project_path)
    result = http.get_json(url, headers={TOKEN_HEADER: config.api_token})
    if isinstance(result, Err):
        error = result.error
        return Err(
            FetchError(project_path=project_path, status=error.status, message=error.message)
        )

    entries = as_obj_list(result.value)
    if entries is None:
        return Err(
            FetchError(project_path=project_path, status=0, message="Expected a JSON array")
        )

    return Ok(parse_releases(project_path, entries))
