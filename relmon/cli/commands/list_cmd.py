"""List command - fetch once and print the current releases."""

from __future__ import annotations

import typer

from relmon.cli.context import build_context, options_of
from relmon.core.errors import ErrorCode
from relmon.gitlab.http import RealHttpClient
from relmon.output.console import Style
from relmon.output.releases import render_snapshot
from relmon.sync.aggregate import fetch_all_releases


def list_releases(
    typer_ctx: typer.Context,
    quiet_failures: bool = typer.Option(
        False, "--quiet-failures", help="Do not print per-project fetch errors."
    ),
) -> None:
    """Fetch all configured projects once and print their latest releases."""
    ctx = build_context(options_of(typer_ctx))
    console = ctx.console

    http = RealHttpClient(timeout=ctx.config.http_timeout)
    aggregate = fetch_all_releases(http, ctx.config)

    if not quiet_failures:
        for failure in aggregate.failures:
            console.warning(str(failure))

    render_snapshot(console, aggregate.snapshot)
    if aggregate.skipped:
        console.print(f"{aggregate.skipped} malformed release entries skipped", Style.DIM)

    if aggregate.all_failed:
        console.error("could not fetch releases for any configured project")
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
