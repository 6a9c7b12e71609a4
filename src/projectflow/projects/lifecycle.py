# src/projectflow/projects/lifecycle.py

"""
Shared lifecycle for Task and Project.

    Pending -> Active -> {Cancelled, Completed}
    Pending -> {Cancelled, Completed}

Cancelled and Completed are terminal. Each transition stamps exactly one
timestamp, and a failing transition leaves the entity untouched.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar

from ..core.errors import InvalidTransition
from ..core.ports import IdFactory, new_id


def check_text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field} must be str, got {type(value).__name__}")
    return value


def check_ts(field: str, value: Any) -> datetime | None:
    if value is None:
        return None
    return require_ts(field, value)


def require_ts(field: str, value: Any) -> datetime:
    """Naive datetimes are taken as UTC so that every stored timestamp is comparable."""
    if not isinstance(value, datetime):
        raise TypeError(f"{field} must be datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class LifecycleEntity:
    """
    Base for entities with a four-state lifecycle.

    Subclasses set `kind` (used in error messages) and `Status`, a StrEnum with
    PENDING, ACTIVE, CANCELLED and COMPLETED members.
    """

    kind: ClassVar[str] = "entity"
    Status: ClassVar[type[StrEnum]]

    __slots__ = (
        "_id",
        "_name",
        "_description",
        "_status",
        "_started_at",
        "_cancelled_at",
        "_finished_at",
        "_forecasted_at",
    )

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
        id: str | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._name = check_text("name", name)
        self._description = check_text("description", description)
        self._started_at = check_ts("started_at", started_at)
        self._cancelled_at = check_ts("cancelled_at", cancelled_at)
        self._finished_at = check_ts("finished_at", finished_at)
        self._forecasted_at = check_ts("forecasted_at", forecasted_at)

        if cancelled_at is not None and finished_at is not None:
            raise ValueError(f"{self.kind} cannot be both cancelled and finished")

        derived = self._status_from_timestamps()
        if status is not None:
            try:
                explicit = self.Status(status)
            except ValueError:
                raise ValueError(f"unknown {self.kind} status: {status!r}") from None
            if explicit != derived:
                raise ValueError(
                    f"{self.kind} status {explicit.value!r} does not match its timestamps "
                    f"(expected {derived.value!r})"
                )
        self._status = derived

        if id is None:
            id = (id_factory or new_id)()
        self._id = check_text("id", id)
        if not self._id.strip():
            raise ValueError("id must not be empty")

    def _status_from_timestamps(self) -> StrEnum:
        if self._cancelled_at is not None:
            return self.Status.CANCELLED
        if self._finished_at is not None:
            return self.Status.COMPLETED
        if self._started_at is not None:
            return self.Status.ACTIVE
        return self.Status.PENDING

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self._id!r}, name={self._name!r}, "
            f"status={self._status.value!r})"
        )

    # ---- read access ----

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def status(self) -> StrEnum:
        return self._status

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def cancelled_at(self) -> datetime | None:
        return self._cancelled_at

    @property
    def finished_at(self) -> datetime | None:
        return self._finished_at

    @property
    def forecasted_at(self) -> datetime | None:
        return self._forecasted_at

    @property
    def is_terminal(self) -> bool:
        return self._status in (self.Status.CANCELLED, self.Status.COMPLETED)

    @property
    def is_open(self) -> bool:
        return not self.is_terminal

    # ---- transitions ----

    def _ensure_not_terminal(self, action: str) -> None:
        if self.is_terminal:
            raise InvalidTransition(self.kind, action, self._status)

    def start(self, at: datetime) -> None:
        at = require_ts("at", at)
        if self._status != self.Status.PENDING:
            raise InvalidTransition(self.kind, "start", self._status)
        self._started_at = at
        self._status = self.Status.ACTIVE

    def cancel(self, at: datetime) -> None:
        at = require_ts("at", at)
        self._ensure_not_terminal("cancel")
        self._cancelled_at = at
        self._status = self.Status.CANCELLED

    def complete(self, at: datetime) -> None:
        at = require_ts("at", at)
        self._ensure_not_terminal("complete")
        self._finished_at = at
        self._status = self.Status.COMPLETED

    # ---- free-form fields ----

    def change_name(self, name: str) -> None:
        self._name = check_text("name", name)

    def change_description(self, description: str) -> None:
        self._description = check_text("description", description)

    def change_forecasted_date(self, date: datetime | None) -> None:
        self._forecasted_at = check_ts("forecasted_at", date)
