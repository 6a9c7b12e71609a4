# src/projectflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

Entities and the service receive their id generator, clock and repository
from the outside. This keeps storage swappable and makes tests deterministic.
"""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..projects.project_models import Project

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


class ProjectRepo(Protocol):
    """Loads and saves whole Project aggregates (tasks included) by id."""

    def get(self, project_id: str) -> Project | None: ...
    def save(self, project: Project) -> None: ...
    def list_projects(self, limit: int = 100) -> list[Project]: ...
    def delete(self, project_id: str) -> bool: ...
    def count_projects(self) -> int: ...
