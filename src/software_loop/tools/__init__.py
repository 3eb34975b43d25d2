"""Tool registration for the software-loop MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fastmcp import Context, FastMCP

from ..config import LoopSettings
from ..journal import status_payload
from ..operations import ProjectContext, load_status, run_checkpoint, run_handoff
from ..vcs import GitSource


@dataclass(slots=True)
class ToolHandles:
    plan_status: Any
    run_checkpoint: Any
    prepare_handoff: Any
    last_session: Any


def register_tools(
    server: FastMCP,
    *,
    settings: LoopSettings,
    project_root: Path,
    git_source: GitSource | None = None,
) -> ToolHandles:
    """Register software-loop's MCP tools on the server."""

    default_root = Path(project_root)

    def _context(root: str | None) -> ProjectContext:
        start = Path(root) if root else default_root
        return ProjectContext.discover(start, settings=settings, git=git_source)

    def _plan_status(root: str | None = None, context: Context | None = None) -> dict[str, Any]:
        """Return the parsed Plan snapshot and the last Journal session."""

        outcome = load_status(_context(root))
        _emit_log(
            context,
            "debug",
            "Plan status",
            extra={
                "project": outcome.snapshot.project_name,
                "current_phase": outcome.snapshot.current_phase.id,
            },
        )
        return status_payload(outcome.snapshot, outcome.session)

    def _last_session(root: str | None = None, context: Context | None = None) -> dict[str, Any] | None:
        """Return the most recent Journal session entry, if any."""

        outcome = load_status(_context(root))
        _emit_log(context, "debug", "Last session", extra={"found": outcome.session is not None})
        return outcome.session.model_dump(mode="json") if outcome.session else None

    def _run_checkpoint(
        phase: int | None = None,
        *,
        run_build: bool = False,
        append: bool = True,
        commit: bool = False,
        root: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Verify a phase against git history and optionally log it to the Journal."""

        outcome = run_checkpoint(
            _context(root),
            phase_id=phase,
            run_build=run_build,
            append=append,
            commit=commit,
        )
        _emit_log(
            context,
            "info",
            "Checkpoint",
            extra={
                "phase": outcome.result.phase.id,
                "confidence": outcome.result.overall_confidence,
                "passed": outcome.result.passed,
            },
        )
        payload = outcome.result.model_dump(mode="json")
        payload["journal_path"] = str(outcome.journal_path) if outcome.journal_path else None
        payload["git_available"] = outcome.git.available
        payload["committed"] = outcome.committed
        return payload

    def _prepare_handoff(
        message: str | None = None,
        *,
        append: bool = True,
        root: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Build a handoff note for the next session and append it to the Journal."""

        outcome = run_handoff(_context(root), message=message, append=append)
        _emit_log(
            context,
            "info",
            "Prepared handoff",
            extra={"next_tasks": len(outcome.handoff.next_tasks), "appended": outcome.journal_path is not None},
        )
        payload = outcome.handoff.model_dump(mode="json")
        payload["journal_path"] = str(outcome.journal_path) if outcome.journal_path else None
        return payload

    tool_status = server.tool(
        name="plan_status",
        description="Parse PRP.md and return phases, tasks, progress statistics and the last session.",
    )(_plan_status)

    tool_session = server.tool(
        name="last_session",
        description="Return the most recent session entry from PROGRESS.md.",
    )(_last_session)

    tool_checkpoint = server.tool(
        name="run_checkpoint",
        description=(
            "Build a confidence-weighted verification matrix for a phase by matching tasks "
            "against recent commits. Optionally run the project build and append the result "
            "to PROGRESS.md."
        ),
    )(_run_checkpoint)

    tool_handoff = server.tool(
        name="prepare_handoff",
        description="Summarize branch, recent commits, next tasks and risks for the next session.",
    )(_prepare_handoff)

    return ToolHandles(
        plan_status=tool_status,
        run_checkpoint=tool_checkpoint,
        prepare_handoff=tool_handoff,
        last_session=tool_session,
    )


__all__ = ["register_tools", "ToolHandles"]

logger = logging.getLogger(__name__)


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
