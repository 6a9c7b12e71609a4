# src/projectflow/core/errors.py

"""
Domain errors.

Everything the entities and the service refuse to do is raised as a
DomainError subclass. The CLI edge turns them into messages; nothing below it
catches them.
"""

from __future__ import annotations

from collections.abc import Iterable


class DomainError(Exception):
    """Base class for business-rule violations."""


class InvalidTransition(DomainError):
    """
    A status change was requested from a status that forbids it.

    `action` is what was attempted ("start", "cancel", "complete"),
    `state` is the blocking current status.
    """

    def __init__(self, entity: str, action: str, state: str) -> None:
        self.entity = entity
        self.action = action
        self.state = str(state)
        super().__init__(f"Cannot {action} {self.state} {entity}")


class IncompleteTasksError(DomainError):
    def __init__(self, project_id: str, task_ids: Iterable[str]) -> None:
        self.project_id = project_id
        self.task_ids = tuple(task_ids)
        super().__init__("Cannot complete project with pending or active tasks")


class InvalidOperation(DomainError):
    """Structural rule violation (e.g. adding a task to a closed project)."""


class EntityNotFound(DomainError, LookupError):
    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} not found: {entity_id}")
