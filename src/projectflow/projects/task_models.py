# src/projectflow/projects/task_models.py

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from ..core.ports import IdFactory
from .lifecycle import LifecycleEntity


class TaskStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Task(LifecycleEntity):
    """
    Leaf unit of work.

    Tasks hold no reference to the project that owns them; ownership lives on
    Project.tasks (and in the tasks.project_id column once stored).
    """

    kind = "task"
    Status = TaskStatus

    __slots__ = ()

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        started_at: datetime | None = None,
        forecasted_at: datetime | None = None,
        *,
        id_factory: IdFactory | None = None,
    ) -> Task:
        """New task: Active when a start time is given, Pending otherwise."""
        return cls(
            name=name,
            description=description,
            started_at=started_at,
            forecasted_at=forecasted_at,
            id_factory=id_factory,
        )
