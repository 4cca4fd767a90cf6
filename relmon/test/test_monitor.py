"""Tests for monitor.py - the command surface and end-to-end cycles."""

from __future__ import annotations

import threading
import webbrowser

from relmon.core.config import MonitorConfig
from relmon.core.result import Err, Ok
from relmon.gitlab.fetcher import releases_url
from relmon.gitlab.http import HttpError, MockHttpClient
from relmon.monitor import ReleaseMonitor, open_external_link
from relmon.sync.events import RELEASES_LOADED, SnapshotEvent

BASE = "https://gitlab.example.com"


def _config(*projects: str, interval: float = 300.0) -> MonitorConfig:
    return MonitorConfig(
        api_token="t",
        projects=projects,
        base_url=BASE,
        poll_interval=interval,
        startup_delay=0.0,
    )


def _entry(tag: str, created: str, **extra: object) -> dict[str, object]:
    entry: dict[str, object] = {"tag_name": tag, "name": tag, "created_at": created}
    entry.update(extra)
    return entry


class TestEndToEnd:
    def test_initial_cycle_collapses_family_and_raises_attention(self) -> None:
        """Two untagged-build releases of X collapse to the newest one."""
        http = MockHttpClient()
        http.set_json(
            releases_url(BASE, "team/X"),
            [
                _entry("2.0.0-rc1", "2024-05-01T10:00:00Z"),
                _entry("2.0.0", "2024-05-02T10:00:00Z"),
            ],
        )
        monitor = ReleaseMonitor(_config("team/X", interval=60.0), http=http)
        loaded: list[SnapshotEvent] = []
        attention: list[bool] = []
        done = threading.Event()

        def on_loaded(event: SnapshotEvent) -> None:
            loaded.append(event)
            done.set()

        monitor.on_loaded(on_loaded)
        monitor.on_attention(attention.append)

        monitor.start()
        try:
            assert done.wait(5.0)
        finally:
            monitor.stop(timeout=5.0)

        assert loaded[0].name == RELEASES_LOADED
        assert [r.tag_name for r in loaded[0].snapshot] == ["2.0.0"]
        assert monitor.has_new_releases()
        assert attention == [True]
        assert [r.tag_name for r in monitor.get_current_snapshot()] == ["2.0.0"]

    def test_refresh_then_acknowledge(self) -> None:
        http = MockHttpClient()
        url = releases_url(BASE, "g/a")
        http.set_json(url, [_entry("1.0-v1", "2024-05-01T10:00:00Z")])
        monitor = ReleaseMonitor(_config("g/a"), http=http)
        attention: list[bool] = []
        monitor.on_attention(attention.append)

        first = monitor.refresh_now()
        monitor.acknowledge_new_releases()
        second = monitor.refresh_now()

        http.set_json(url, [_entry("1.0-v2", "2024-05-02T10:00:00Z")])
        third = monitor.refresh_now()

        assert isinstance(first, Ok)
        assert isinstance(second, Ok)
        assert isinstance(third, Ok)
        assert [r.tag_name for r in third.value] == ["1.0-v2"]
        assert attention == [True, False, True]
        assert monitor.has_new_releases()

    def test_partial_failure_keeps_other_projects(self) -> None:
        http = MockHttpClient()
        http.set_json(releases_url(BASE, "g/ok"), [_entry("1.0", "2024-05-01T10:00:00Z")])
        bad = releases_url(BASE, "g/bad")
        http.set_json(bad, HttpError(url=bad, status=403, message="Forbidden"))
        monitor = ReleaseMonitor(_config("g/ok", "g/bad"), http=http)

        result = monitor.refresh_now()

        assert isinstance(result, Ok)
        assert [r.project_path for r in result.value] == ["g/ok"]

    def test_acknowledge_without_new_releases(self) -> None:
        monitor = ReleaseMonitor(_config("g/a"), http=MockHttpClient())
        monitor.acknowledge_new_releases()
        assert not monitor.has_new_releases()


class TestOpenExternalLink:
    def test_opens_http_link(self) -> None:
        opened: list[str] = []

        def opener(url: str) -> bool:
            opened.append(url)
            return True

        result = open_external_link("https://gitlab.com/g/a/-/releases/1.0", opener=opener)

        assert result == Ok(None)
        assert opened == ["https://gitlab.com/g/a/-/releases/1.0"]

    def test_rejects_non_http(self) -> None:
        opened: list[str] = []

        result = open_external_link("file:///etc/passwd", opener=lambda u: opened.append(u) or True)

        assert isinstance(result, Err)
        assert result.error.kind == "invalid_url"
        assert opened == []

    def test_rejects_empty(self) -> None:
        result = open_external_link("", opener=lambda u: True)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_url"

    def test_no_browser(self) -> None:
        result = open_external_link("https://gitlab.com", opener=lambda u: False)

        assert isinstance(result, Err)
        assert result.error.kind == "browser_failed"
        assert "no browser available" in str(result.error)

    def test_browser_error(self) -> None:
        def opener(url: str) -> bool:
            raise webbrowser.Error("could not locate runnable browser")

        result = open_external_link("https://gitlab.com", opener=opener)

        assert isinstance(result, Err)
        assert result.error.kind == "browser_failed"
        assert "could not locate" in result.error.message

    def test_monitor_uses_injected_opener(self) -> None:
        opened: list[str] = []

        def opener(url: str) -> bool:
            opened.append(url)
            return True

        monitor = ReleaseMonitor(_config("g/a"), http=MockHttpClient(), opener=opener)

        assert monitor.open_external_link("http://example.com") == Ok(None)
        assert opened == ["http://example.com"]
