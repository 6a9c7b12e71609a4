# src/projectflow/projects/project_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from ..core.errors import InvalidOperation
from .project_models import Project
from .task_models import Task

logger = logging.getLogger(__name__)

_ENTITY_COLUMNS = (
    "id",
    "name",
    "description",
    "status",
    "started_at",
    "cancelled_at",
    "finished_at",
    "forecasted_at",
)


def _ts_to_str(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def _str_to_ts(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


class ProjectStore:
    """
    SQLite store for Project aggregates.

    One row per project, one row per task with the owning project_id and the
    task's position inside the project (insertion order). The whole aggregate
    is written in a single transaction.

    The schema is created when missing and never altered afterwards.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "projects.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("ProjectStore ready db=%s total=%s", self._db_path, self.count_projects())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        conn.execute("PRAGMA foreign_keys=ON")
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'pending',
                    started_at TEXT,
                    cancelled_at TEXT,
                    finished_at TEXT,
                    forecasted_at TEXT
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'pending',
                    started_at TEXT,
                    cancelled_at TEXT,
                    finished_at TEXT,
                    forecasted_at TEXT
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id, position)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _entity_values(entity: Project | Task) -> tuple[str | None, ...]:
        return (
            entity.id,
            entity.name,
            entity.description,
            entity.status.value,
            _ts_to_str(entity.started_at),
            _ts_to_str(entity.cancelled_at),
            _ts_to_str(entity.finished_at),
            _ts_to_str(entity.forecasted_at),
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            status=row["status"],
            started_at=_str_to_ts(row["started_at"]),
            cancelled_at=_str_to_ts(row["cancelled_at"]),
            finished_at=_str_to_ts(row["finished_at"]),
            forecasted_at=_str_to_ts(row["forecasted_at"]),
        )

    def _row_to_project(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Project:
        cur = conn.execute(
            "SELECT * FROM tasks WHERE project_id = ? ORDER BY position ASC",
            (row["id"],),
        )
        tasks = [self._row_to_task(r) for r in cur.fetchall()]
        return Project(
            id=row["id"],
            name=row["name"],
            description=row["description"] or "",
            status=row["status"],
            started_at=_str_to_ts(row["started_at"]),
            cancelled_at=_str_to_ts(row["cancelled_at"]),
            finished_at=_str_to_ts(row["finished_at"]),
            forecasted_at=_str_to_ts(row["forecasted_at"]),
            tasks=tasks,
        )

    # ---- public API ----

    def count_projects(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM projects").fetchone()
            return int(n)
        finally:
            conn.close()

    def get(self, project_id: str) -> Project | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
            return self._row_to_project(conn, row) if row else None
        finally:
            conn.close()

    def list_projects(self, limit: int = 100) -> list[Project]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM projects ORDER BY name ASC, id ASC LIMIT ?",
                (int(limit),),
            ).fetchall()
            return [self._row_to_project(conn, r) for r in rows]
        finally:
            conn.close()

    def save(self, project: Project) -> None:
        """
        Insert or update the project and all of its tasks.

        A task id that is already stored under a different project is refused
        with InvalidOperation and nothing is written.
        """
        cols = ", ".join(_ENTITY_COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in _ENTITY_COLUMNS if c != "id")
        tasks = project.tasks

        conn = self._get_conn()
        try:
            with conn:
                if tasks:
                    placeholders = ",".join("?" for _ in tasks)
                    clash = conn.execute(
                        f"""
                        SELECT id, project_id
                        FROM tasks
                        WHERE id IN ({placeholders})
                          AND project_id != ?
                        LIMIT 1
                        """,
                        (*(t.id for t in tasks), project.id),
                    ).fetchone()
                    if clash is not None:
                        raise InvalidOperation(
                            f"Task {clash['id']} already belongs to project {clash['project_id']}"
                        )

                conn.execute(
                    f"""
                    INSERT INTO projects({cols})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET {updates}
                    """,
                    self._entity_values(project),
                )
                for position, task in enumerate(tasks):
                    conn.execute(
                        f"""
                        INSERT INTO tasks({cols}, project_id, position)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET {updates}, position = excluded.position
                        """,
                        (*self._entity_values(task), project.id, position),
                    )
            logger.debug(
                "Project saved id=%s status=%s tasks=%d",
                project.id,
                project.status.value,
                len(tasks),
            )
        finally:
            conn.close()

    def delete(self, project_id: str) -> bool:
        conn = self._get_conn()
        try:
            with conn:
                conn.execute("DELETE FROM tasks WHERE project_id = ?", (project_id,))
                cur = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            deleted = cur.rowcount == 1
            logger.debug("Project delete id=%s deleted=%s", project_id, deleted)
            return deleted
        finally:
            conn.close()
