"""GitLab API access: HTTP client, release model and per-project fetcher."""

from .fetcher import FetchError, ParsedReleases, fetch_project_releases, parse_releases
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .model import EMPTY_SNAPSHOT, Release, Snapshot

__all__ = [
    "EMPTY_SNAPSHOT",
    "FetchError",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "ParsedReleases",
    "RealHttpClient",
    "Release",
    "Snapshot",
    "fetch_project_releases",
    "parse_releases",
]
