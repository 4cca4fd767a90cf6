"""Result type for explicit error handling.

Fetching, config loading and link opening all return ``Result[T, E]`` rather
than raising, so callers have to decide what a failure means for them:

    result = fetch_project_releases(http, config, "group/app")
    match result:
        case Ok(fetched):
            releases.extend(fetched.releases)
        case Err(error):
            logger.warning("%s", error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result holding ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result holding ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
