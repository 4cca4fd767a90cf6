"""The command surface a presentation layer talks to.

:class:`ReleaseMonitor` wires config, HTTP client, store, events and poller
together. A desktop shell, the CLI, or a test all use the same four inbound
commands plus event and attention subscriptions.
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

from relmon.core.config import MonitorConfig
from relmon.core.result import Err, Ok, Result
from relmon.gitlab.http import HttpClient, RealHttpClient
from relmon.gitlab.model import Snapshot
from relmon.sync.aggregate import Aggregate, fetch_all_releases
from relmon.sync.events import ReleaseEvents, SnapshotListener
from relmon.sync.poller import CycleError, Poller
from relmon.sync.state import AttentionListener, SyncStore

__all__ = ["LinkError", "ReleaseMonitor", "open_external_link"]

logger = logging.getLogger(__name__)

UrlOpener = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class LinkError:
    kind: Literal["invalid_url", "browser_failed"]
    url: str
    message: str

    def __str__(self) -> str:
        return f"Failed to open URL: {self.message} ({self.url})"


class ReleaseMonitor:
    def __init__(
        self,
        config: MonitorConfig,
        *,
        http: HttpClient | None = None,
        opener: UrlOpener = webbrowser.open,
    ) -> None:
        self.config = config
        self.http: HttpClient = http or RealHttpClient(timeout=config.http_timeout)
        self.store = SyncStore()
        self.events = ReleaseEvents()
        self.poller = Poller(
            store=self.store,
            events=self.events,
            aggregate=self._aggregate,
            interval=config.poll_interval,
            startup_delay=config.startup_delay,
        )
        self._opener = opener

    def _aggregate(self) -> Aggregate:
        return fetch_all_releases(self.http, self.config)

    # Lifecycle

    def start(self) -> None:
        logger.debug(
            "Monitoring %d project(s) on %s", len(self.config.projects), self.config.base_url
        )
        self.poller.start()

    def stop(self, timeout: float | None = None) -> None:
        self.poller.stop(timeout)

    # Subscriptions

    def on_loaded(self, listener: SnapshotListener) -> None:
        self.events.on_loaded(listener)

    def on_updated(self, listener: SnapshotListener) -> None:
        self.events.on_updated(listener)

    def on_attention(self, listener: AttentionListener) -> None:
        """``listener(True)`` when new releases appear, ``listener(False)`` once acknowledged."""
        self.store.subscribe(listener)

    # Inbound commands

    def get_current_snapshot(self) -> Snapshot:
        return self.store.read_current()

    def refresh_now(self) -> Result[Snapshot, CycleError]:
        return self.poller.refresh_now()

    def acknowledge_new_releases(self) -> None:
        self.store.mark_seen()

    def has_new_releases(self) -> bool:
        return self.store.has_unseen_new_releases

    def open_external_link(self, url: str) -> Result[None, LinkError]:
        return open_external_link(url, opener=self._opener)


def open_external_link(
    url: str,
    *,
    opener: UrlOpener = webbrowser.open,
) -> Result[None, LinkError]:
    """Hand a release link to the OS browser."""
    scheme = urlparse(url).scheme.lower()
    if scheme not in ("http", "https"):
        return Err(
            LinkError(kind="invalid_url", url=url, message="only http(s) links can be opened")
        )
    try:
        opened = opener(url)
    except webbrowser.Error as e:
        return Err(LinkError(kind="browser_failed", url=url, message=str(e)))
    if not opened:
        return Err(LinkError(kind="browser_failed", url=url, message="no browser available"))
    return Ok(None)
