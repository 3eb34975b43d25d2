"""Build probe: detect and run the project's build command."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from ..verification.models import BuildFailed, BuildNotAttempted, BuildPassed, BuildStatus
from .source import run_sync
from .utils import sanitize_environment

logger = logging.getLogger(__name__)

_ERROR_TAIL = 2000

# Checked in order; the first marker present in the project root wins.
_MARKERS: tuple[tuple[str, str], ...] = (
    ("Cargo.toml", "cargo build"),
    ("go.mod", "go build ./..."),
    ("Makefile", "make"),
    ("pyproject.toml", "python -m compileall -q ."),
)


def detect_build_command(root: Path) -> str | None:
    """Guess a build command from files in the project root."""

    root = Path(root)
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            scripts = json.loads(package_json.read_text(encoding="utf-8")).get("scripts") or {}
        except (json.JSONDecodeError, AttributeError):
            scripts = {}
        if isinstance(scripts, dict) and "build" in scripts:
            return "npm run build"

    for marker, command in _MARKERS:
        if (root / marker).is_file():
            return command
    return None


async def _run_command(command: str, root: Path, timeout: float) -> BuildStatus:
    process = await asyncio.create_subprocess_shell(
        command,
        cwd=str(root),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        env=sanitize_environment(),
    )
    try:
        output, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return BuildFailed(command=command, error=f"Build timed out after {timeout:g}s")

    if process.returncode == 0:
        return BuildPassed(command=command)
    text = output.decode("utf-8", errors="replace").strip()
    return BuildFailed(
        command=command,
        error=text[-_ERROR_TAIL:] or f"Build exited with code {process.returncode}",
    )


def run_build_probe(root: Path, command: str | None = None, *, timeout: float = 600.0) -> BuildStatus:
    """Run the configured or detected build; absence of a command means not attempted."""

    command = command or detect_build_command(root)
    if not command:
        logger.info("No build command detected", extra={"root": str(root)})
        return BuildNotAttempted()

    logger.info("Running build probe", extra={"command": command})
    try:
        status = run_sync(_run_command(command, Path(root), timeout))
    except OSError as exc:
        return BuildFailed(command=command, error=str(exc))
    logger.info("Build probe finished", extra={"command": command, "passed": status.passed})
    return status


__all__ = ["detect_build_command", "run_build_probe"]
