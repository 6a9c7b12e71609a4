# src/projectflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..projects.project_service import ProjectService
from .ports import ProjectRepo


@dataclass
class AppState:
    # Settings object (real Settings or a test double with the same attributes).
    settings: Any

    repo: ProjectRepo
    service: ProjectService
