"""Watch command - keep polling and show releases as they change.

The terminal plays the part of the tray app: tables are re-rendered on
``releases-loaded`` / ``releases-updated``, an attention line is printed when
the unseen flag flips, and simple line commands drive the monitor.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import typer

from relmon.cli.context import build_context, options_of
from relmon.core.result import Err
from relmon.monitor import ReleaseMonitor
from relmon.output.console import ConsoleProtocol, Style
from relmon.output.releases import render_snapshot
from relmon.sync.events import SnapshotEvent

HELP_TEXT = "commands: r=refresh  a=acknowledge  o N=open release N  q=quit"

ReadCommand = Callable[[], str]


class WatchView:
    def __init__(
        self,
        console: ConsoleProtocol,
        monitor: ReleaseMonitor,
        *,
        auto_ack: bool = False,
    ) -> None:
        self.console = console
        self.monitor = monitor
        self.auto_ack = auto_ack

    def attach(self) -> None:
        self.monitor.on_loaded(self.on_loaded)
        self.monitor.on_updated(self.on_updated)
        self.monitor.on_attention(self.on_attention)

    def on_loaded(self, event: SnapshotEvent) -> None:
        # Everything is "new" on first load; nothing to highlight yet.
        render_snapshot(self.console, event.snapshot)
        self._stamp("Loaded")

    def on_updated(self, event: SnapshotEvent) -> None:
        if not event.changed:
            self._stamp("No changes")
            return
        new_ids = {r.release_id for r in event.new_releases}
        render_snapshot(self.console, event.snapshot, new_ids=new_ids)
        self._stamp("Updated")
        if self.auto_ack and event.new_releases:
            self.monitor.acknowledge_new_releases()

    def on_attention(self, pending: bool) -> None:
        if pending:
            self.console.info("New releases available! (type 'a' to acknowledge)")
        else:
            self.console.print("New releases acknowledged", Style.DIM)

    def handle(self, line: str) -> bool:
        """Run one line command. Returns False when the user asked to quit."""
        command, _, arg = line.strip().partition(" ")
        match command.lower():
            case "":
                return True
            case "q" | "quit":
                return False
            case "r" | "refresh":
                result = self.monitor.refresh_now()
                if isinstance(result, Err):
                    self.console.error(str(result.error))
                return True
            case "a" | "ack":
                self.monitor.acknowledge_new_releases()
                return True
            case "o" | "open":
                self._open(arg.strip())
                return True
            case "h" | "help" | "?":
                self.console.print(HELP_TEXT, Style.DIM)
                return True
            case _:
                self.console.warning(f"unknown command: {command}")
                return True

    def _open(self, arg: str) -> None:
        snapshot = self.monitor.get_current_snapshot()
        if not arg.isdigit() or not 1 <= int(arg) <= len(snapshot):
            self.console.warning(f"expected a release number between 1 and {len(snapshot)}")
            return
        release = snapshot[int(arg) - 1]
        if not release.web_url:
            self.console.warning(f"{release.project_name} {release.tag_name} has no URL")
            return
        result = self.monitor.open_external_link(release.web_url)
        if isinstance(result, Err):
            self.console.error(str(result.error))

    def _stamp(self, what: str) -> None:
        self.console.print(f"{what} at {datetime.now():%H:%M:%S}", Style.DIM)


def run_command_loop(view: WatchView, read_command: ReadCommand) -> None:
    while True:
        try:
            line = read_command()
        except EOFError:
            return
        if not view.handle(line):
            return


def watch(
    typer_ctx: typer.Context,
    auto_ack: bool = typer.Option(
        False, "--auto-ack", help="Acknowledge new releases as soon as they are shown."
    ),
) -> None:
    """Poll the configured projects and show new releases as they appear."""
    ctx = build_context(options_of(typer_ctx))
    monitor = ReleaseMonitor(ctx.config)
    view = WatchView(ctx.console, monitor, auto_ack=auto_ack)
    view.attach()

    ctx.console.print(
        f"Watching {len(ctx.config.projects)} project(s) every {ctx.config.poll_interval:g}s",
        Style.DIM,
    )
    ctx.console.print(HELP_TEXT, Style.DIM)
    monitor.start()
    try:
        run_command_loop(view, read_command=input)
    except KeyboardInterrupt:
        ctx.console.newline()
    finally:
        monitor.stop(timeout=5.0)
