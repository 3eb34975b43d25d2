"""Async runner for the git CLI."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .utils import sanitize_environment


class GitRunnerError(RuntimeError):
    """Base class for git runner errors."""


class GitNotFoundError(GitRunnerError):
    """Raised when the git executable cannot be located."""


@dataclass(slots=True)
class GitExecutionResult:
    """Holds the outcome of a git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Execute git commands asynchronously inside a working directory."""

    def __init__(self, cwd: Path, executable: Path | None = None) -> None:
        self._cwd = Path(cwd)
        self._executable_path = self._resolve_executable(executable)

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise GitNotFoundError(f"git executable not found at {candidate}")

        binary = shutil.which("git")
        if binary is None:
            raise GitNotFoundError("git executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    @property
    def cwd(self) -> Path:
        return self._cwd

    async def current_branch(self) -> GitExecutionResult:
        return await self._invoke("branch", "--show-current")

    async def log(self, limit: int) -> GitExecutionResult:
        # Unit/record separators keep multi-word subjects intact.
        return await self._invoke("log", f"-{limit}", "--pretty=format:%h%x1f%s%x1f%cs%x1e")

    async def status(self) -> GitExecutionResult:
        return await self._invoke("status", "--short")

    async def init(self) -> GitExecutionResult:
        return await self._invoke("init")

    async def add(self, *paths: str) -> GitExecutionResult:
        return await self._invoke("add", "--", *paths)

    async def commit(self, message: str, *paths: str) -> GitExecutionResult:
        # With pathspecs only those paths are committed; the rest of the index stays staged.
        if paths:
            return await self._invoke("commit", "-m", message, "--", *paths)
        return await self._invoke("commit", "-m", message)

    async def _invoke(self, *args: str) -> GitExecutionResult:
        cmd = [str(self._executable_path), *args]
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(self._cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=sanitize_environment(),
        )
        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return GitExecutionResult(args=tuple(cmd), returncode=process.returncode, stdout=stdout, stderr=stderr)


class FakeGitRunner(GitRunner):
    """Test double that replays scripted git responses keyed by subcommand."""

    def __init__(  # type: ignore[override]
        self,
        responses: dict[str, GitExecutionResult | Iterable[GitExecutionResult]] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._responses: dict[str, list[GitExecutionResult]] = {}
        for key, value in (responses or {}).items():
            self._responses[key] = [value] if isinstance(value, GitExecutionResult) else list(value)
        self._invocations: list[tuple[str, ...]] = []
        self._executable_path = Path("/tmp/fake-git")
        self._cwd = Path(cwd) if cwd is not None else Path(".")

    async def _invoke(self, *args: str) -> GitExecutionResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        queue = self._responses.get(args[0]) if args else None
        if queue:
            return queue.pop(0) if len(queue) > 1 else queue[0]
        return GitExecutionResult(args=tuple(args), returncode=0, stdout="", stderr="")

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations

