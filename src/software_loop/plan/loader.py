"""Locate and read Plan/Journal files and the optional project config."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import PlanSnapshot, SessionInfo
from .parser import build_snapshot, read_last_session

PROJECT_CONFIG_NAME = "software-loop.yaml"


class SoftwareLoopError(RuntimeError):
    """Base class for user-facing software-loop failures."""


class PlanNotFoundError(SoftwareLoopError):
    """Raised when the Plan document does not exist."""


class ProjectConfigError(SoftwareLoopError):
    """Raised when the project config file cannot be parsed."""


class ProjectConfig(BaseModel):
    """Per-project overrides read from ``software-loop.yaml``."""

    journal_file: str | None = Field(default=None, description="Journal file name, relative to the project root.")
    build_command: str | None = Field(default=None, description="Shell command used by the build probe.")
    commit_limit: int | None = Field(default=None, description="How many recent commits to inspect.")

    @field_validator("journal_file", "build_command")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @field_validator("commit_limit")
    @classmethod
    def _validate_commit_limit(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("commit_limit must be >= 1")
        return value


def load_project_config(root: Path) -> ProjectConfig:
    """Load ``software-loop.yaml`` from ``root``; a missing file yields defaults."""

    path = Path(root) / PROJECT_CONFIG_NAME
    if not path.exists():
        return ProjectConfig()

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ProjectConfigError(f"Failed to parse YAML in {path}: {exc}") from exc

    if document is None:
        return ProjectConfig()
    if not isinstance(document, dict):
        raise ProjectConfigError(f"Project config in {path} must be a mapping")

    try:
        return ProjectConfig.model_validate(document)
    except ValidationError as exc:
        raise ProjectConfigError(f"Project config validation error in {path}: {exc}") from exc


def locate_plan(start: Path, plan_file: str = "PRP.md") -> Path | None:
    """Search ``start`` and its parents for the Plan file."""

    directory = Path(start).resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / plan_file
        if candidate.is_file():
            return candidate
    return None


@dataclass(slots=True)
class PlanSources:
    """Resolved locations of a project's Plan and Journal."""

    root: Path
    plan_path: Path
    journal_path: Path

    @classmethod
    def discover(
        cls,
        start: Path,
        *,
        plan_file: str = "PRP.md",
        journal_file: str = "PROGRESS.md",
    ) -> "PlanSources":
        plan_path = locate_plan(start, plan_file)
        if plan_path is None:
            raise PlanNotFoundError(
                f"No {plan_file} found in {Path(start).resolve()} or its parents. "
                "Run 'software-loop init' to create a new project."
            )
        root = plan_path.parent
        return cls(root=root, plan_path=plan_path, journal_path=root / journal_file)

    @property
    def has_journal(self) -> bool:
        return self.journal_path.is_file()


def read_plan(path: Path, *, today: date | None = None) -> PlanSnapshot:
    path = Path(path)
    if not path.is_file():
        raise PlanNotFoundError(f"Plan file not found: {path}")
    return build_snapshot(path.read_text(encoding="utf-8", errors="replace"), today=today)


def read_session(path: Path) -> SessionInfo | None:
    """Return the last Journal session, or ``None`` when the Journal is absent or empty."""

    path = Path(path)
    if not path.is_file():
        return None
    return read_last_session(path.read_text(encoding="utf-8", errors="replace"))


__all__ = [
    "PROJECT_CONFIG_NAME",
    "PlanNotFoundError",
    "PlanSources",
    "ProjectConfig",
    "ProjectConfigError",
    "SoftwareLoopError",
    "load_project_config",
    "locate_plan",
    "read_plan",
    "read_session",
]
