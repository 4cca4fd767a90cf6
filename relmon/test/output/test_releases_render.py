"""Tests for output/releases.py - snapshot rendering."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from relmon.gitlab.model import Release
from relmon.output.console import MockConsole, Style
from relmon.output.releases import (
    NEW_MARKER,
    RELEASE_COLUMNS,
    format_created,
    format_relative_time,
    release_row,
    render_snapshot,
    split_tag,
)

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=UTC)


def _release(path: str, tag: str, *, age: timedelta = timedelta(days=2)) -> Release:
    return Release(
        project_name=path.rsplit("/", 1)[-1],
        project_path=path,
        tag_name=tag,
        name=f"Release {tag}",
        description="",
        created_at=NOW - age,
        released_at=None,
        web_url=f"https://gitlab.com/{path}/-/releases/{tag}",
    )


class TestFormatRelativeTime:
    def test_days(self) -> None:
        assert format_relative_time(NOW - timedelta(days=3, hours=5), NOW) == "3 days ago"

    def test_single_day(self) -> None:
        assert format_relative_time(NOW - timedelta(days=1), NOW) == "1 day ago"

    def test_hours(self) -> None:
        assert format_relative_time(NOW - timedelta(hours=2, minutes=59), NOW) == "2 hours ago"

    def test_minutes(self) -> None:
        assert format_relative_time(NOW - timedelta(minutes=1), NOW) == "1 minute ago"

    def test_just_now(self) -> None:
        assert format_relative_time(NOW - timedelta(seconds=59), NOW) == "Just now"

    def test_future_is_just_now(self) -> None:
        assert format_relative_time(NOW + timedelta(hours=1), NOW) == "Just now"


class TestSplitTag:
    def test_attribute_and_version(self) -> None:
        assert split_tag("api-v1.2.3") == ("api", "v1.2.3")

    def test_suffix_and_underscore(self) -> None:
        assert split_tag("firmware_v2.0-rc1") == ("firmware", "v2.0-rc1")

    def test_version_only(self) -> None:
        assert split_tag("V3.1") == ("N/A", "V3.1")

    def test_no_version_keeps_whole_tag(self) -> None:
        """A family suffix like "-v2" is not a dotted version."""
        assert split_tag("1.0-v2") == ("N/A", "1.0-v2")

    def test_empty(self) -> None:
        assert split_tag("") == ("N/A", "N/A")


class TestFormatCreated:
    def test_afternoon(self) -> None:
        assert format_created(datetime(2024, 5, 1, 14, 5, tzinfo=UTC)) == "May 1, 2024, 02:05 PM"

    def test_offset_is_shown_in_utc(self) -> None:
        when = datetime(2024, 12, 31, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert format_created(when) == "Jan 1, 2025, 01:30 AM"


class TestReleaseRow:
    def test_cells(self) -> None:
        row = release_row(3, _release("g/app", "1.0-v2"), is_new=False, now=NOW)

        assert row.cells == (
            "3",
            "",
            "app",
            "N/A",
            "1.0-v2",
            "Release 1.0-v2",
            "May 8, 2024, 12:00 PM",
            "2 days ago",
            "https://gitlab.com/g/app/-/releases/1.0-v2",
        )
        assert row.style is Style.DEFAULT
        assert len(row.cells) == len(RELEASE_COLUMNS)

    def test_new_is_marked_and_highlighted(self) -> None:
        row = release_row(1, _release("g/app", "1.0"), is_new=True, now=NOW)

        assert row.cells[1] == NEW_MARKER
        assert row.style is Style.HIGHLIGHT


class TestRenderSnapshot:
    """Tests for render_snapshot against MockConsole."""

    def test_empty(self) -> None:
        console = MockConsole()

        render_snapshot(console, ())

        assert console.messages == ["No releases found"]
        assert console.count(Style.DIM) == 1

    def test_rows_in_snapshot_order(self) -> None:
        console = MockConsole()
        snapshot = (_release("g/alpha", "1.0"), _release("g/beta", "2.0"))

        render_snapshot(console, snapshot, title="Releases", now=NOW)

        assert console.messages[0] == "Releases"
        assert console.messages[1].startswith("1 |  | alpha | N/A | 1.0")
        assert console.messages[2].startswith("2 |  | beta | N/A | 2.0")

    def test_highlights_new_ids(self) -> None:
        console = MockConsole()
        old = _release("g/alpha", "1.0")
        new = _release("g/beta", "2.0")

        render_snapshot(console, (old, new), new_ids={new.release_id}, now=NOW)

        assert console.count(Style.HIGHLIGHT) == 1
        assert console.find("beta")[0].style is Style.HIGHLIGHT
        assert NEW_MARKER in console.find("beta")[0].message
