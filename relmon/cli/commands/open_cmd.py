"""Open command - open a release URL in the default browser."""

from __future__ import annotations

import typer

from relmon.core.errors import ErrorCode
from relmon.core.result import Err
from relmon.monitor import open_external_link


def open_link(url: str = typer.Argument(..., help="Release URL to open.")) -> None:
    """Open a release page in the default browser."""
    result = open_external_link(url)
    if isinstance(result, Err):
        typer.echo(f"error: {result.error}", err=True)
        code = ErrorCode.USER_ERROR if result.error.kind == "invalid_url" else ErrorCode.ENV_ERROR
        raise typer.Exit(code=int(code))
