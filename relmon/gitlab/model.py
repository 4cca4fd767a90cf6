from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

__all__ = ["Release", "Snapshot", "EMPTY_SNAPSHOT", "project_name_of"]


def project_name_of(project_path: str) -> str:
    """Short display name: the last segment of a project path."""
    return project_path.rstrip("/").rsplit("/", 1)[-1] or project_path


@dataclass(frozen=True, slots=True)
class Release:
    """One published release of one project."""

    project_name: str
    project_path: str
    tag_name: str
    name: str
    description: str
    created_at: datetime
    released_at: datetime | None
    web_url: str

    @property
    def release_id(self) -> str:
        return f"{self.project_path}-{self.tag_name}"

    @property
    def key(self) -> tuple[str, str]:
        """Identity used when diffing snapshots."""
        return (self.project_path, self.tag_name)


Snapshot: TypeAlias = tuple[Release, ...]

EMPTY_SNAPSHOT: Snapshot = ()
