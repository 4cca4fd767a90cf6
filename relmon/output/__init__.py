"""Terminal output: console abstraction and release rendering."""

from .console import ConsoleProtocol, MockConsole, RichConsole, Style, TableRow
from .releases import format_relative_time, render_snapshot

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
    "TableRow",
    "format_relative_time",
    "render_snapshot",
]
