# src/projectflow/projects/project_models.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum

from ..core.errors import EntityNotFound, IncompleteTasksError, InvalidOperation
from ..core.ports import IdFactory
from .lifecycle import LifecycleEntity, require_ts
from .task_models import Task


class ProjectStatus(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Project(LifecycleEntity):
    """
    Aggregate root owning an ordered list of tasks.

    Extra rules on top of the shared lifecycle:
    - cancel() cascades to every owned task that is still pending or active
      (already cancelled/completed tasks are left as they are);
    - complete() is refused while any owned task is pending or active, and the
      check runs before anything is mutated;
    - add_task() is refused on a closed project and for a task that started
      before the project did.
    """

    kind = "project"
    Status = ProjectStatus

    __slots__ = ("_tasks",)

    def __init__(
        self,
        *,
        name: str,
        description: str,
        started_at: datetime | None = None,
        cancelled_at: datetime | None = None,
        finished_at: datetime | None = None,
        forecasted_at: datetime | None = None,
        status: str | None = None,
        tasks: Iterable[Task] = (),
        id: str | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        super().__init__(
            name=name,
            description=description,
            started_at=started_at,
            cancelled_at=cancelled_at,
            finished_at=finished_at,
            forecasted_at=forecasted_at,
            status=status,
            id=id,
            id_factory=id_factory,
        )

        owned: list[Task] = []
        seen: set[str] = set()
        for task in tasks:
            if not isinstance(task, Task):
                raise TypeError(f"tasks must contain Task objects, got {type(task).__name__}")
            if task.id in seen:
                raise ValueError(f"duplicate task id in project: {task.id}")
            seen.add(task.id)
            owned.append(task)

        if self.is_terminal and any(t.is_open for t in owned):
            raise ValueError(f"{self._status.value} project cannot own pending or active tasks")

        self._tasks = owned

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        started_at: datetime | None = None,
        forecasted_at: datetime | None = None,
        *,
        id_factory: IdFactory | None = None,
    ) -> Project:
        """New project: Active when a start time is given, Pending otherwise."""
        return cls(
            name=name,
            description=description,
            started_at=started_at,
            forecasted_at=forecasted_at,
            id_factory=id_factory,
        )

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def open_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.is_open]

    def get_task(self, task_id: str) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise EntityNotFound("task", task_id)

    # ---- transitions ----

    def cancel(self, at: datetime) -> None:
        super().cancel(at)
        for task in self._tasks:
            if task.is_open:
                task.cancel(at)

    def complete(self, at: datetime) -> None:
        at = require_ts("at", at)
        self._ensure_not_terminal("complete")
        blocking = self.open_tasks()
        if blocking:
            raise IncompleteTasksError(self._id, (t.id for t in blocking))
        super().complete(at)

    def add_task(self, task: Task) -> None:
        if not isinstance(task, Task):
            raise TypeError(f"expected Task, got {type(task).__name__}")
        if self.is_terminal:
            raise InvalidOperation(f"Cannot add task to {self._status.value} project")
        if (
            task.started_at is not None
            and self._started_at is not None
            and task.started_at < self._started_at
        ):
            raise InvalidOperation("Cannot add task to project before project started")
        if any(t.id == task.id for t in self._tasks):
            raise InvalidOperation(f"Task {task.id} already belongs to this project")
        self._tasks.append(task)
