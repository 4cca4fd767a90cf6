from __future__ import annotations

from pathlib import Path

import typer
from dotenv import find_dotenv, load_dotenv

from relmon import __version__
from relmon.cli.commands.list_cmd import list_releases
from relmon.cli.commands.open_cmd import open_link
from relmon.cli.commands.watch import watch
from relmon.cli.context import GlobalOptions
from relmon.core.errors import ErrorCode
from relmon.core.logging import setup_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Watch GitLab projects for new releases.",
)


# Commands
app.command("list")(list_releases)
app.command()(watch)
app.command("open")(open_link)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Load variables from this .env file (default: nearest .env from cwd).",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="TOML config file; environment variables override it.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    setup_logging(verbose=verbose)

    if env_file is not None:
        path = env_file.expanduser()
        if not path.is_file():
            typer.echo(f"error: --env-file '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        load_dotenv(path, override=False)
    else:
        found = find_dotenv(usecwd=True)
        if found:
            load_dotenv(found, override=False)

    ctx.obj = GlobalOptions(config_path=config.expanduser() if config is not None else None)


def main() -> None:
    app()
