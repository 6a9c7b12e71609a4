# src/projectflow/projects/project_service.py

from __future__ import annotations

"""
Project service.

Every public method follows the same shape:
- load the aggregate by id (EntityNotFound when missing),
- apply exactly one entity mutation,
- save the aggregate.

If the mutation raises, nothing is saved and the error reaches the caller
unchanged.
"""

import logging
from datetime import datetime

from ..core.errors import EntityNotFound
from ..core.ports import Clock, IdFactory, ProjectRepo, new_id, utc_now
from .project_models import Project
from .task_models import Task

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(
        self,
        repo: ProjectRepo,
        *,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._id_factory = id_factory

    def _load(self, project_id: str) -> Project:
        project = self._repo.get(project_id)
        if project is None:
            raise EntityNotFound("project", project_id)
        return project

    def _at(self, at: datetime | None) -> datetime:
        return self._clock() if at is None else at

    # ---- projects ----

    def create(
        self,
        name: str,
        description: str,
        started_at: datetime | None = None,
        forecasted_at: datetime | None = None,
    ) -> Project:
        project = Project.create(
            name,
            description,
            started_at=started_at,
            forecasted_at=forecasted_at,
            id_factory=self._id_factory,
        )
        self._repo.save(project)
        logger.info("Project created id=%s status=%s", project.id, project.status.value)
        return project

    def get(self, project_id: str) -> Project:
        return self._load(project_id)

    def list_projects(self, limit: int = 100) -> list[Project]:
        return self._repo.list_projects(limit=limit)

    def start(self, project_id: str, at: datetime | None = None) -> Project:
        project = self._load(project_id)
        project.start(self._at(at))
        self._repo.save(project)
        logger.info("Project started id=%s", project_id)
        return project

    def cancel(self, project_id: str, at: datetime | None = None) -> Project:
        project = self._load(project_id)
        project.cancel(self._at(at))
        self._repo.save(project)
        logger.info("Project cancelled id=%s tasks=%d", project_id, len(project.tasks))
        return project

    def complete(self, project_id: str, at: datetime | None = None) -> Project:
        project = self._load(project_id)
        project.complete(self._at(at))
        self._repo.save(project)
        logger.info("Project completed id=%s", project_id)
        return project

    def update(
        self,
        project_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        forecasted_at: datetime | None = None,
    ) -> Project:
        """Change only the fields that are given. Status is never touched."""
        project = self._load(project_id)
        if name is not None:
            project.change_name(name)
        if description is not None:
            project.change_description(description)
        if forecasted_at is not None:
            project.change_forecasted_date(forecasted_at)
        self._repo.save(project)
        logger.info("Project updated id=%s", project_id)
        return project

    def clear_forecast(self, project_id: str) -> Project:
        project = self._load(project_id)
        project.change_forecasted_date(None)
        self._repo.save(project)
        return project

    def delete(self, project_id: str) -> None:
        if not self._repo.delete(project_id):
            raise EntityNotFound("project", project_id)
        logger.info("Project deleted id=%s", project_id)

    # ---- tasks ----

    def add_task(
        self,
        project_id: str,
        name: str,
        description: str,
        started_at: datetime | None = None,
        forecasted_at: datetime | None = None,
    ) -> Task:
        project = self._load(project_id)
        task = Task.create(
            name,
            description,
            started_at=started_at,
            forecasted_at=forecasted_at,
            id_factory=self._id_factory,
        )
        project.add_task(task)
        self._repo.save(project)
        logger.info("Task added id=%s project=%s status=%s", task.id, project_id, task.status.value)
        return task

    def start_task(self, project_id: str, task_id: str, at: datetime | None = None) -> Task:
        project = self._load(project_id)
        task = project.get_task(task_id)
        task.start(self._at(at))
        self._repo.save(project)
        logger.info("Task started id=%s project=%s", task_id, project_id)
        return task

    def cancel_task(self, project_id: str, task_id: str, at: datetime | None = None) -> Task:
        project = self._load(project_id)
        task = project.get_task(task_id)
        task.cancel(self._at(at))
        self._repo.save(project)
        logger.info("Task cancelled id=%s project=%s", task_id, project_id)
        return task

    def complete_task(self, project_id: str, task_id: str, at: datetime | None = None) -> Task:
        project = self._load(project_id)
        task = project.get_task(task_id)
        task.complete(self._at(at))
        self._repo.save(project)
        logger.info("Task completed id=%s project=%s", task_id, project_id)
        return task

    def update_task(
        self,
        project_id: str,
        task_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        forecasted_at: datetime | None = None,
    ) -> Task:
        project = self._load(project_id)
        task = project.get_task(task_id)
        if name is not None:
            task.change_name(name)
        if description is not None:
            task.change_description(description)
        if forecasted_at is not None:
            task.change_forecasted_date(forecasted_at)
        self._repo.save(project)
        logger.info("Task updated id=%s project=%s", task_id, project_id)
        return task
