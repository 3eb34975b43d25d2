"""Append-only Journal writes and scaffold creation."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..plan.loader import SoftwareLoopError
from .templates import ScaffoldParams, render_scaffold

logger = logging.getLogger(__name__)

_PROJECT_NAME = re.compile(r"^[A-Za-z0-9_-]+$")
SCAFFOLD_DIRECTORIES = (".claude/commands", "docs", "src")


class ScaffoldError(SoftwareLoopError):
    """Raised when a project cannot be scaffolded."""


def append_block(path: Path, block: str) -> Path:
    """Append a block to the Journal; existing content is never rewritten."""

    path = Path(path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(block)
    logger.info("Appended journal block", extra={"path": str(path), "chars": len(block)})
    return path


def validate_project_name(name: str) -> str:
    stripped = name.strip()
    if not stripped:
        raise ScaffoldError("Project name is required")
    if not _PROJECT_NAME.match(stripped):
        raise ScaffoldError("Project name can only contain letters, numbers, hyphens, and underscores")
    return stripped


def write_scaffold(parent: Path, params: ScaffoldParams) -> Path:
    """Create ``parent/<project_name>`` with the scaffold files; refuses to reuse a directory."""

    name = validate_project_name(params.project_name)
    project_path = Path(parent) / name
    if project_path.exists():
        raise ScaffoldError(f'Directory "{name}" already exists.')

    for directory in SCAFFOLD_DIRECTORIES:
        (project_path / directory).mkdir(parents=True, exist_ok=True)

    for relative, content in render_scaffold(params).items():
        target = project_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    logger.info("Created project scaffold", extra={"path": str(project_path)})
    return project_path


__all__ = ["ScaffoldError", "append_block", "validate_project_name", "write_scaffold"]
