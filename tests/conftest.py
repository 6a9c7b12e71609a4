# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from projectflow.core.state import AppState
from projectflow.projects.project_service import ProjectService
from projectflow.projects.project_store import ProjectStore

from .fakes import FakeClock, InMemoryProjectRepo, SequentialIds

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="projectflow-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "projects.sqlite3",
        log_dir=tmp_path,
        list_limit=50,
    )


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture()
def store(settings: SimpleNamespace) -> ProjectStore:
    return ProjectStore(settings.db_path)


@pytest.fixture()
def memory_repo() -> InMemoryProjectRepo:
    return InMemoryProjectRepo()


@pytest.fixture()
def service(memory_repo: InMemoryProjectRepo, clock: FakeClock, ids: SequentialIds) -> ProjectService:
    return ProjectService(memory_repo, clock=clock, id_factory=ids)


@pytest.fixture()
def state(settings: SimpleNamespace, store: ProjectStore, clock: FakeClock, ids: SequentialIds) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep the real SQLite store here because the CLI tests are meant
    to go through persistence end to end.
    """
    return AppState(
        settings=settings,
        repo=store,
        service=ProjectService(store, clock=clock, id_factory=ids),
    )
