# src/projectflow/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import cast

from ..core.errors import DomainError
from ..core.state import AppState
from ..projects.lifecycle import LifecycleEntity
from ..projects.project_models import Project

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class UsageError(Exception):
    """Bad command arguments; the message is shown to the user as-is."""


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /new, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Domain errors and usage errors become "Error: ..." replies; anything
        else propagates to the caller.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (DomainError, UsageError) as e:
            logger.info("Command /%s refused: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def _need(args: list[str], n: int, usage: str) -> None:
    if len(args) < n:
        raise UsageError(f"Usage: {usage}")


def _parse_at(raw: str) -> datetime:
    """ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError:
        raise UsageError(f"Invalid timestamp: {raw!r} (expected ISO-8601)") from None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def _optional_at(args: list[str], index: int) -> datetime | None:
    return _parse_at(args[index]) if len(args) > index else None


def _split_name_description(args: list[str], usage: str) -> tuple[str, str]:
    name, _, description = " ".join(args).partition("|")
    name = name.strip()
    if not name:
        raise UsageError(f"Usage: {usage}")
    return name, description.strip()


# ---- formatting ----


def _fmt_ts(ts: datetime | None) -> str:
    return ts.isoformat(timespec="seconds") if ts is not None else "-"


def _fmt_entity(entity: LifecycleEntity) -> str:
    return f"{entity.id}  [{entity.status.value}]  {entity.name}"


def _fmt_project(project: Project) -> str:
    lines = [
        f"Project {project.id}",
        f"  Name: {project.name}",
        f"  Description: {project.description or '-'}",
        f"  Status: {project.status.value}",
        f"  Started: {_fmt_ts(project.started_at)}",
        f"  Cancelled: {_fmt_ts(project.cancelled_at)}",
        f"  Finished: {_fmt_ts(project.finished_at)}",
        f"  Forecast: {_fmt_ts(project.forecasted_at)}",
    ]
    if project.tasks:
        lines.append(f"  Tasks ({len(project.tasks)}):")
        lines.extend(f"    {_fmt_entity(t)}" for t in project.tasks)
    else:
        lines.append("  Tasks: none")
    return "\n".join(lines)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    app_name = getattr(state.settings, "app_name", "projectflow")
    db_path = getattr(state.settings, "db_path", "?")
    return (
        "Status:\n"
        f"  App: {app_name}\n"
        f"  Database: {db_path}\n"
        f"  Projects: {state.repo.count_projects()}"
    )


def cmd_projects(state: AppState, args: list[str]) -> str:
    limit = int(getattr(state.settings, "list_limit", 100))
    projects = state.service.list_projects(limit=limit)
    if not projects:
        return "No projects yet. Use /new <name> | <description>."
    lines = ["Projects:"]
    for p in projects:
        open_count = len(p.open_tasks())
        lines.append(f"  {_fmt_entity(p)}  (tasks: {len(p.tasks)}, open: {open_count})")
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    _need(args, 1, "/show <project_id>")
    return _fmt_project(state.service.get(args[0]))


def cmd_new(state: AppState, args: list[str]) -> str:
    name, description = _split_name_description(args, "/new <name> | <description>")
    project = state.service.create(name, description)
    return f"Created project {_fmt_entity(project)}"


def cmd_start(state: AppState, args: list[str]) -> str:
    _need(args, 1, "/start <project_id> [iso-time]")
    project = state.service.start(args[0], _optional_at(args, 1))
    return f"Started project {_fmt_entity(project)}"


def cmd_cancel(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /cancel <project_id> [iso-time]

    Open tasks are cancelled along with the project; emit reports how many.
    """
    _need(args, 1, "/cancel <project_id> [iso-time]")
    before = {t.id for t in state.service.get(args[0]).open_tasks()}
    project = state.service.cancel(args[0], _optional_at(args, 1))
    if emit is not None and before:
        emit(f"Cancelled {len(before)} open task(s) with the project.")
    return f"Cancelled project {_fmt_entity(project)}"


def cmd_complete(state: AppState, args: list[str]) -> str:
    _need(args, 1, "/complete <project_id> [iso-time]")
    project = state.service.complete(args[0], _optional_at(args, 1))
    return f"Completed project {_fmt_entity(project)}"


def cmd_rename(state: AppState, args: list[str]) -> str:
    _need(args, 2, "/rename <project_id> <name>")
    project = state.service.update(args[0], name=" ".join(args[1:]))
    return f"Renamed project {_fmt_entity(project)}"


def cmd_describe(state: AppState, args: list[str]) -> str:
    _need(args, 2, "/describe <project_id> <text>")
    project = state.service.update(args[0], description=" ".join(args[1:]))
    return f"Updated description of {project.id}"


def cmd_forecast(state: AppState, args: list[str]) -> str:
    """
    /forecast <project_id> <iso-time>   -> set forecast
    /forecast <project_id> none         -> clear forecast
    """
    _need(args, 2, "/forecast <project_id> <iso-time|none>")
    if args[1].lower() == "none":
        project = state.service.clear_forecast(args[0])
    else:
        project = state.service.update(args[0], forecasted_at=_parse_at(args[1]))
    return f"Forecast for {project.id}: {_fmt_ts(project.forecasted_at)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    _need(args, 1, "/delete <project_id>")
    state.service.delete(args[0])
    return f"Deleted project {args[0]}"


def cmd_task(state: AppState, args: list[str]) -> str:
    usage = "/task <project_id> <name> | <description>"
    _need(args, 2, usage)
    name, description = _split_name_description(args[1:], usage)
    task = state.service.add_task(args[0], name, description)
    return f"Added task {_fmt_entity(task)}"


def cmd_task_start(state: AppState, args: list[str]) -> str:
    _need(args, 2, "/task-start <project_id> <task_id> [iso-time]")
    task = state.service.start_task(args[0], args[1], _optional_at(args, 2))
    return f"Started task {_fmt_entity(task)}"


def cmd_task_cancel(state: AppState, args: list[str]) -> str:
    _need(args, 2, "/task-cancel <project_id> <task_id> [iso-time]")
    task = state.service.cancel_task(args[0], args[1], _optional_at(args, 2))
    return f"Cancelled task {_fmt_entity(task)}"


def cmd_task_complete(state: AppState, args: list[str]) -> str:
    _need(args, 2, "/task-complete <project_id> <task_id> [iso-time]")
    task = state.service.complete_task(args[0], args[1], _optional_at(args, 2))
    return f"Completed task {_fmt_entity(task)}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show database path and project count.")
registry.register("projects", cmd_projects, help_text="List projects.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show a project with its tasks: /show <id>.")
registry.register("new", cmd_new, help_text="Create a project: /new <name> | <description>.")
registry.register("start", cmd_start, help_text="Start a project: /start <id> [iso-time].")
registry.register(
    "cancel", cmd_cancel, help_text="Cancel a project and its open tasks: /cancel <id> [iso-time]."
)
registry.register(
    "complete", cmd_complete, help_text="Complete a project: /complete <id> [iso-time]."
)
registry.register("rename", cmd_rename, help_text="Rename a project: /rename <id> <name>.")
registry.register(
    "describe", cmd_describe, help_text="Change description: /describe <id> <text>."
)
registry.register(
    "forecast", cmd_forecast, help_text="Set or clear forecast: /forecast <id> <iso-time|none>."
)
registry.register("delete", cmd_delete, help_text="Delete a project: /delete <id>.")
registry.register(
    "task", cmd_task, help_text="Add a task: /task <project_id> <name> | <description>."
)
registry.register(
    "task-start", cmd_task_start, help_text="Start a task: /task-start <pid> <tid> [iso-time]."
)
registry.register(
    "task-cancel", cmd_task_cancel, help_text="Cancel a task: /task-cancel <pid> <tid> [iso-time]."
)
registry.register(
    "task-complete",
    cmd_task_complete,
    help_text="Complete a task: /task-complete <pid> <tid> [iso-time].",
)
