"""Logging setup for relmon.

Library modules only ever do ``logger = logging.getLogger(__name__)``. The CLI
calls :func:`setup_logging` once to route the ``relmon`` logger tree through a
Rich handler on stderr, so log lines do not interleave with rendered tables
on stdout.
"""

from __future__ import annotations

import logging

__all__ = ["setup_logging", "LOGGER_NAME"]

LOGGER_NAME = "relmon"


def setup_logging(*, verbose: bool = False, level: str | None = None) -> logging.Logger:
    """Configure the ``relmon`` logger.

    Args:
        verbose: Shortcut for DEBUG level
        level: Explicit level name (e.g. "INFO"); overrides ``verbose``

    Returns:
        The configured package logger
    """
    from rich.console import Console
    from rich.logging import RichHandler

    if level is not None:
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
    else:
        resolved = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    return logger
