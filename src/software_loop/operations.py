"""Command-level operations shared by the CLI and the MCP tools.

Each operation is a single read-compute-render cycle: the Plan and Journal
are re-read, git is queried once, and the outcome is returned as typed
records. Only a missing Plan raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from .config import LoopSettings, get_settings
from .journal import ScaffoldParams, append_block, checkpoint_block, handoff_block, write_scaffold
from .plan import PlanSnapshot, PlanSources, SessionInfo, load_project_config, read_plan, read_session
from .vcs import GitSnapshot, GitSource, run_build_probe, run_sync
from .verification import BuildNotAttempted, CheckpointResult, HandoffData, build_checkpoint, build_handoff

logger = logging.getLogger(__name__)

CHECKPOINT_LOG_PREVIEW = 5


@dataclass(slots=True)
class ProjectContext:
    """Everything an operation needs about one project."""

    sources: PlanSources
    settings: LoopSettings
    git: GitSource

    @classmethod
    def discover(
        cls,
        start: Path,
        settings: LoopSettings | None = None,
        git: GitSource | None = None,
    ) -> "ProjectContext":
        base = settings or get_settings()
        sources = PlanSources.discover(start, plan_file=base.plan_file, journal_file=base.journal_file)
        merged = base.merged_with(load_project_config(sources.root))
        if merged.journal_file != base.journal_file:
            sources = PlanSources(
                root=sources.root,
                plan_path=sources.plan_path,
                journal_path=sources.root / merged.journal_file,
            )
        return cls(
            sources=sources,
            settings=merged,
            git=git or GitSource.for_directory(sources.root, merged.git_path),
        )


@dataclass(slots=True)
class StatusOutcome:
    snapshot: PlanSnapshot
    session: SessionInfo | None


@dataclass(slots=True)
class CheckpointOutcome:
    result: CheckpointResult
    git: GitSnapshot
    journal_path: Path | None = None
    block: str = ""
    committed: bool = False


@dataclass(slots=True)
class HandoffOutcome:
    handoff: HandoffData
    git: GitSnapshot
    journal_path: Path | None = None
    block: str = ""


@dataclass(slots=True)
class InitOutcome:
    project_path: Path
    git_initialized: bool = False
    warnings: list[str] = field(default_factory=list)


def load_status(context: ProjectContext) -> StatusOutcome:
    snapshot = read_plan(context.sources.plan_path)
    session = read_session(context.sources.journal_path)
    return StatusOutcome(snapshot=snapshot, session=session)


def _append_if_journal(context: ProjectContext, block: str) -> Path | None:
    if not context.sources.has_journal:
        logger.info("Journal not found; block not appended", extra={"path": str(context.sources.journal_path)})
        return None
    return append_block(context.sources.journal_path, block)


def _commit_journal(context: ProjectContext, message: str) -> bool:
    runner = context.git.runner
    if runner is None:
        return False
    relative = str(context.sources.journal_path.relative_to(context.sources.root))

    async def _commit() -> bool:
        added = await runner.add(relative)
        if not added.ok:
            return False
        committed = await runner.commit(message, relative)
        return committed.ok

    try:
        return run_sync(_commit())
    except OSError as exc:
        logger.warning("Checkpoint commit failed", extra={"error": str(exc)})
        return False


def run_checkpoint(
    context: ProjectContext,
    *,
    phase_id: int | None = None,
    run_build: bool = False,
    append: bool = True,
    commit: bool = True,
    now: datetime | None = None,
) -> CheckpointOutcome:
    """Verify a phase against git history and log the result to the Journal."""

    snapshot = read_plan(context.sources.plan_path)
    git = context.git.snapshot(context.settings.commit_limit)
    if not git.available:
        logger.warning("Version control unavailable; verifying without commits", extra={"error": git.error})

    build = (
        run_build_probe(
            context.sources.root,
            context.settings.build_command,
            timeout=context.settings.build_timeout,
        )
        if run_build
        else BuildNotAttempted()
    )

    result = build_checkpoint(snapshot, git.commits, phase_id=phase_id, build_status=build, now=now)
    outcome = CheckpointOutcome(result=result, git=git)

    if append:
        log_lines = [f"{commit.hash} {commit.message}" for commit in git.commits[:CHECKPOINT_LOG_PREVIEW]]
        outcome.block = checkpoint_block(result, log_lines)
        outcome.journal_path = _append_if_journal(context, outcome.block)
        # A phase with no tasks passes vacuously but is never committed as verified.
        if commit and result.passed and result.verification_matrix and outcome.journal_path is not None:
            outcome.committed = _commit_journal(context, f"checkpoint: {result.phase.label} verified")

    logger.info(
        "Checkpoint complete",
        extra={
            "phase": result.phase.id,
            "confidence": result.overall_confidence,
            "passed": result.passed,
            "committed": outcome.committed,
        },
    )
    return outcome


def run_handoff(
    context: ProjectContext,
    *,
    message: str | None = None,
    append: bool = True,
    now: datetime | None = None,
) -> HandoffOutcome:
    snapshot = read_plan(context.sources.plan_path)
    git = context.git.snapshot(context.settings.commit_limit)
    handoff = build_handoff(
        snapshot,
        commits=git.commits,
        changes=git.changes,
        branch=git.branch,
        message=message,
        now=now,
    )
    outcome = HandoffOutcome(handoff=handoff, git=git, block=handoff_block(handoff))
    if append:
        outcome.journal_path = _append_if_journal(context, outcome.block)
    return outcome


def init_project(
    parent: Path,
    name: str,
    *,
    git: bool = True,
    git_path: str | None = None,
    today: date | None = None,
) -> InitOutcome:
    """Scaffold a new project directory and optionally make the initial commit."""

    params = ScaffoldParams(project_name=name, today=today or date.today())
    project_path = write_scaffold(parent, params)
    outcome = InitOutcome(project_path=project_path)
    if not git:
        return outcome

    source = GitSource.for_directory(project_path, git_path)
    runner = source.runner
    if runner is None:
        outcome.warnings.append("Git initialization skipped (git not available)")
        return outcome

    async def _initialize() -> bool:
        steps = (
            runner.init,
            lambda: runner.add("."),
            lambda: runner.commit("Initial commit: Software Loop project structure"),
        )
        for step in steps:
            result = await step()
            if not result.ok:
                outcome.warnings.append(result.stderr.strip() or "git command failed")
                return False
        return True

    try:
        outcome.git_initialized = run_sync(_initialize())
    except OSError as exc:
        outcome.warnings.append(f"Git initialization skipped ({exc})")
    return outcome


__all__ = [
    "CheckpointOutcome",
    "HandoffOutcome",
    "InitOutcome",
    "ProjectContext",
    "StatusOutcome",
    "init_project",
    "load_status",
    "run_checkpoint",
    "run_handoff",
]
