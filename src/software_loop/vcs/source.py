"""Best-effort view of the repository: branch, recent commits, working-tree changes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Coroutine, TypeVar

from ..verification.models import CommitInfo
from .runner import GitExecutionResult, GitNotFoundError, GitRunner

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Execute an async coroutine on a dedicated event loop."""

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dataclass(slots=True)
class GitSnapshot:
    """Repository facts gathered for one command invocation."""

    available: bool
    branch: str | None = None
    commits: list[CommitInfo] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def unavailable(cls, error: str) -> "GitSnapshot":
        return cls(available=False, error=error)


def parse_log(output: str) -> list[CommitInfo]:
    """Parse ``git log`` output produced with unit/record separators."""

    commits: list[CommitInfo] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FIELD_SEP)
        if len(parts) < 2 or not parts[0].strip():
            continue
        commit_date = parts[2].strip() if len(parts) > 2 and parts[2].strip() else None
        commits.append(CommitInfo(hash=parts[0].strip(), message=parts[1].strip(), date=commit_date))
    return commits


def parse_status(output: str) -> list[str]:
    return [line.rstrip() for line in output.splitlines() if line.strip()]


class GitSource:
    """Collect repository facts; failures degrade to empty values instead of raising."""

    def __init__(self, runner: GitRunner | None) -> None:
        self._runner = runner

    @classmethod
    def for_directory(cls, root: Path, git_path: str | None = None) -> "GitSource":
        try:
            runner = GitRunner(root, Path(git_path) if git_path else None)
        except GitNotFoundError as exc:
            logger.warning("git unavailable", extra={"error": str(exc)})
            return cls(None)
        return cls(runner)

    @property
    def runner(self) -> GitRunner | None:
        return self._runner

    def snapshot(self, commit_limit: int) -> GitSnapshot:
        if self._runner is None:
            return GitSnapshot.unavailable("git executable not found")
        try:
            return run_sync(self._collect(self._runner, commit_limit))
        except OSError as exc:
            logger.warning("git invocation failed", extra={"error": str(exc)})
            return GitSnapshot.unavailable(str(exc))

    @staticmethod
    async def _collect(runner: GitRunner, commit_limit: int) -> GitSnapshot:
        branch_result = await runner.current_branch()
        if not branch_result.ok:
            return GitSnapshot.unavailable(_describe_failure(branch_result))

        log_result = await runner.log(commit_limit)
        status_result = await runner.status()

        # An empty repository has a branch but no log; that is not a failure.
        return GitSnapshot(
            available=True,
            branch=branch_result.stdout.strip() or None,
            commits=parse_log(log_result.stdout) if log_result.ok else [],
            changes=parse_status(status_result.stdout) if status_result.ok else [],
        )


def _describe_failure(result: GitExecutionResult) -> str:
    return result.stderr.strip() or f"git exited with code {result.returncode}"


__all__ = ["GitSnapshot", "GitSource", "parse_log", "parse_status", "run_sync"]
