# tests/test_task_models.py

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from projectflow.core.errors import InvalidTransition
from projectflow.projects.task_models import Task, TaskStatus

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
T1 = T0 + timedelta(hours=1)


def _task_in(status: TaskStatus) -> Task:
    task = Task.create("write docs", "user guide", id_factory=lambda: "t-1")
    if status == TaskStatus.ACTIVE:
        task.start(T0)
    elif status == TaskStatus.CANCELLED:
        task.cancel(T0)
    elif status == TaskStatus.COMPLETED:
        task.complete(T0)
    assert task.status == status
    return task


def test_create_without_start_is_pending() -> None:
    task = Task.create("write docs", "user guide", id_factory=lambda: "t-1")

    assert task.id == "t-1"
    assert task.name == "write docs"
    assert task.description == "user guide"
    assert task.status == TaskStatus.PENDING
    assert task.started_at is None
    assert task.cancelled_at is None
    assert task.finished_at is None
    assert task.forecasted_at is None


def test_create_with_start_is_active() -> None:
    task = Task.create("write docs", "user guide", started_at=T0, forecasted_at=T1)

    assert task.status == TaskStatus.ACTIVE
    assert task.started_at == T0
    assert task.forecasted_at == T1


def test_status_is_the_entity_enum() -> None:
    task = Task.create("write docs", "")
    assert isinstance(task.status, TaskStatus)

    task.start(T0)
    assert isinstance(task.status, TaskStatus)
    assert task.status.value == "active"


def test_default_id_is_a_uuid() -> None:
    a = Task.create("a", "")
    b = Task.create("b", "")

    assert uuid.UUID(a.id)
    assert a.id != b.id


def test_explicit_id_wins_over_factory() -> None:
    task = Task(name="a", description="", id="given", id_factory=lambda: "generated")
    assert task.id == "given"


ALLOWED = {
    "start": {TaskStatus.PENDING},
    "cancel": {TaskStatus.PENDING, TaskStatus.ACTIVE},
    "complete": {TaskStatus.PENDING, TaskStatus.ACTIVE},
}
RESULT = {
    "start": (TaskStatus.ACTIVE, "started_at"),
    "cancel": (TaskStatus.CANCELLED, "cancelled_at"),
    "complete": (TaskStatus.COMPLETED, "finished_at"),
}


@pytest.mark.parametrize("action", ["start", "cancel", "complete"])
@pytest.mark.parametrize("source", list(TaskStatus))
def test_transition_table(action: str, source: TaskStatus) -> None:
    task = _task_in(source)

    if source in ALLOWED[action]:
        getattr(task, action)(T1)
        expected_status, stamp = RESULT[action]
        assert task.status == expected_status
        assert getattr(task, stamp) == T1
    else:
        with pytest.raises(InvalidTransition) as exc_info:
            getattr(task, action)(T1)
        err = exc_info.value
        assert err.entity == "task"
        assert err.action == action
        assert err.state == source.value
        assert str(err) == f"Cannot {action} {source.value} task"
        assert task.status == source


def test_start_messages_are_distinct_per_state() -> None:
    messages = set()
    for source in (TaskStatus.ACTIVE, TaskStatus.COMPLETED, TaskStatus.CANCELLED):
        with pytest.raises(InvalidTransition) as exc_info:
            _task_in(source).start(T1)
        messages.add(str(exc_info.value))

    assert messages == {
        "Cannot start active task",
        "Cannot start completed task",
        "Cannot start cancelled task",
    }


@pytest.mark.parametrize(
    ("action", "message"),
    [("cancel", "Cannot cancel cancelled task"), ("complete", "Cannot complete completed task")],
)
def test_second_terminal_call_fails(action: str, message: str) -> None:
    task = _task_in(TaskStatus.PENDING)
    getattr(task, action)(T0)

    with pytest.raises(InvalidTransition, match=f"^{message}$"):
        getattr(task, action)(T1)


def test_failed_transition_leaves_task_unchanged() -> None:
    task = _task_in(TaskStatus.PENDING)
    task.complete(T0)

    with pytest.raises(InvalidTransition):
        task.cancel(T1)

    assert task.status == TaskStatus.COMPLETED
    assert task.finished_at == T0
    assert task.cancelled_at is None


def test_complete_does_not_require_start() -> None:
    task = _task_in(TaskStatus.PENDING)
    task.complete(T1)

    assert task.status == TaskStatus.COMPLETED
    assert task.started_at is None
    assert task.finished_at == T1


def test_full_lifecycle_keeps_each_timestamp() -> None:
    task = _task_in(TaskStatus.PENDING)
    task.start(T0)
    task.complete(T1)

    assert task.started_at == T0
    assert task.finished_at == T1
    assert task.cancelled_at is None


def test_transition_requires_datetime() -> None:
    task = _task_in(TaskStatus.PENDING)

    with pytest.raises(TypeError):
        task.start(None)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        task.complete("2024-01-01")  # type: ignore[arg-type]
    assert task.status == TaskStatus.PENDING


def test_field_mutators_never_touch_status() -> None:
    task = _task_in(TaskStatus.COMPLETED)

    task.change_name("renamed")
    task.change_description("new text")
    task.change_forecasted_date(T1)

    assert task.name == "renamed"
    assert task.description == "new text"
    assert task.forecasted_at == T1
    assert task.status == TaskStatus.COMPLETED

    task.change_forecasted_date(None)
    assert task.forecasted_at is None


def test_status_is_read_only() -> None:
    task = _task_in(TaskStatus.PENDING)
    with pytest.raises(AttributeError):
        task.status = TaskStatus.COMPLETED  # type: ignore[misc]


# ---- constructor validation ----


def test_constructor_rejects_unknown_fields() -> None:
    with pytest.raises(TypeError):
        Task(name="a", description="", owner="bob")  # type: ignore[call-arg]


def test_constructor_rejects_wrong_types() -> None:
    with pytest.raises(TypeError):
        Task(name=42, description="")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Task(name="a", description="", started_at="2024-01-01")  # type: ignore[arg-type]


def test_constructor_rejects_cancelled_and_finished() -> None:
    with pytest.raises(ValueError, match="both cancelled and finished"):
        Task(name="a", description="", cancelled_at=T0, finished_at=T1)


def test_constructor_derives_status_from_timestamps() -> None:
    assert Task(name="a", description="", started_at=T0).status == TaskStatus.ACTIVE
    assert Task(name="a", description="", cancelled_at=T0).status == TaskStatus.CANCELLED
    assert (
        Task(name="a", description="", started_at=T0, finished_at=T1).status
        == TaskStatus.COMPLETED
    )


def test_constructor_accepts_matching_explicit_status() -> None:
    task = Task(name="a", description="", started_at=T0, status="active", id="t-9")

    assert task.status == TaskStatus.ACTIVE
    assert task.id == "t-9"


def test_constructor_rejects_mismatched_status() -> None:
    with pytest.raises(ValueError, match="does not match"):
        Task(name="a", description="", status=TaskStatus.COMPLETED)
    with pytest.raises(ValueError, match="unknown task status"):
        Task(name="a", description="", status="archived")


def test_constructor_rejects_empty_id() -> None:
    with pytest.raises(ValueError):
        Task(name="a", description="", id="  ")
