from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relmon.core.config import MonitorConfig, load_config
from relmon.core.errors import ErrorCode
from relmon.core.result import Err
from relmon.output.console import ConsoleProtocol, RichConsole

ENV_CONFIG_PATH = "RELMON_CONFIG"


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options parsed by the app callback, carried on ``typer.Context.obj``."""

    config_path: Path | None = None


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: MonitorConfig
    console: ConsoleProtocol


def options_of(ctx: typer.Context) -> GlobalOptions:
    obj = ctx.obj
    return obj if isinstance(obj, GlobalOptions) else GlobalOptions()


def resolve_config_path(options: GlobalOptions) -> Path | None:
    """``--config`` wins over ``RELMON_CONFIG``; neither means no file."""
    if options.config_path is not None:
        return options.config_path
    raw_path = os.environ.get(ENV_CONFIG_PATH, "").strip()
    return Path(raw_path).expanduser() if raw_path else None


def build_context(options: GlobalOptions | None = None) -> CLIContext:
    """Load configuration or exit with remediation text on stderr."""
    path = resolve_config_path(options or GlobalOptions())

    config_result = load_config(os.environ, path=path)
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.message}", err=True)
        if error.hint:
            typer.echo(f"hint: {error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(config=config_result.value, console=RichConsole())
