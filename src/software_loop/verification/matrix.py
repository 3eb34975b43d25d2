"""Join Plan tasks against commit history to build checkpoints and handoffs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from ..plan.models import PhaseInfo, PlanSnapshot, Task
from .confidence import compute_phase_confidence, compute_task_confidence
from .models import (
    BuildNotAttempted,
    BuildStatus,
    CheckpointResult,
    CommitInfo,
    EntryStatus,
    HandoffData,
    VerificationEntry,
)

logger = logging.getLogger(__name__)

REASON_COMPLETE_WITH_COMMIT = "task complete with commit"
REASON_COMPLETE_NO_COMMIT = "marked complete, no commit found"
REASON_PARTIAL = "work-in-progress — commit exists but task not marked complete"
REASON_NOT_STARTED = "not started"

HANDOFF_COMMIT_PREVIEW = 5
HANDOFF_NEXT_TASKS = 5
UNCOMMITTED_RISK = "Uncommitted changes in working tree"


def _now_iso(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def find_task_commit(task: Task, commits: Sequence[CommitInfo]) -> str | None:
    """Return the task's own hash, else the first commit whose message mentions the task id."""

    if task.commit_hash:
        return task.commit_hash
    needle = task.id.lower()
    for commit in commits:
        if needle in commit.message.lower():
            return commit.hash
    return None


def _reason(status: EntryStatus, has_commit: bool) -> str:
    if status == "complete":
        return REASON_COMPLETE_WITH_COMMIT if has_commit else REASON_COMPLETE_NO_COMMIT
    if status == "partial":
        return REASON_PARTIAL
    return REASON_NOT_STARTED


def verify_task(task: Task, commits: Sequence[CommitInfo]) -> VerificationEntry:
    commit_hash = find_task_commit(task, commits)
    has_commit = commit_hash is not None
    is_partial = not task.completed and has_commit

    if task.completed:
        status: EntryStatus = "complete"
    elif has_commit:
        status = "partial"
    else:
        status = "not_started"

    # No test-detection probe exists, so tests never contribute.
    confidence = compute_task_confidence(
        completed=task.completed,
        has_commit=has_commit,
        has_tests=False,
        tests_pass=False,
        is_partial=is_partial,
    )

    return VerificationEntry(
        task_id=task.id,
        description=task.description,
        commit_hash=commit_hash,
        status=status,
        confidence=confidence,
        reason=_reason(status, has_commit),
    )


def resolve_target_phase(snapshot: PlanSnapshot, phase_id: int | None) -> PhaseInfo:
    if phase_id is None or phase_id == snapshot.current_phase.id:
        return snapshot.current_phase
    phase = snapshot.find_phase(phase_id)
    if phase is not None:
        return phase.info()
    return PhaseInfo(id=phase_id, name=f"Phase {phase_id}", lifecycle_state="planned")


def _summarize(phase: PhaseInfo, passed: bool, confidence: int, incomplete: int, build: BuildStatus) -> str:
    if passed:
        return f"Phase {phase.id} verified at {confidence}% confidence."
    parts = []
    if incomplete:
        parts.append(f"{incomplete} incomplete task{'s' if incomplete != 1 else ''}")
    if build.attempted and not build.passed:
        parts.append("build failed")
    return f"Phase {phase.id} not verified: {'; '.join(parts)}."


def build_checkpoint(
    snapshot: PlanSnapshot,
    commits: Sequence[CommitInfo],
    *,
    phase_id: int | None = None,
    build_status: BuildStatus | None = None,
    now: datetime | None = None,
) -> CheckpointResult:
    """Score every task of the target phase and decide whether the phase passes."""

    phase = resolve_target_phase(snapshot, phase_id)
    build = build_status or BuildNotAttempted()

    matrix = tuple(verify_task(task, commits) for task in snapshot.tasks_for_phase(phase.id))
    overall = compute_phase_confidence(matrix)
    incomplete = sum(1 for entry in matrix if entry.status != "complete")
    passed = incomplete == 0 and (not build.attempted or build.passed)

    logger.debug(
        "Built verification matrix",
        extra={"phase": phase.id, "tasks": len(matrix), "confidence": overall, "passed": passed},
    )

    return CheckpointResult(
        timestamp=_now_iso(now),
        phase=phase,
        verification_matrix=matrix,
        build_status=build,
        overall_confidence=overall,
        passed=passed,
        summary=_summarize(phase, passed, overall, incomplete, build),
    )


def _hashes_match(left: str, right: str) -> bool:
    left, right = left.lower(), right.lower()
    return left.startswith(right) or right.startswith(left)


def _completed_in(task: Task, commits: Sequence[CommitInfo]) -> bool:
    if task.commit_hash and any(_hashes_match(task.commit_hash, commit.hash) for commit in commits):
        return True
    needle = task.id.lower()
    return any(needle in commit.message.lower() for commit in commits)


def build_handoff(
    snapshot: PlanSnapshot,
    *,
    commits: Sequence[CommitInfo] = (),
    changes: Sequence[str] = (),
    branch: str | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> HandoffData:
    """Collect what the next session needs: position, recent work, next tasks, risks."""

    recent = tuple(commits[:HANDOFF_COMMIT_PREVIEW])
    risks: list[str] = []
    if message and message.strip():
        risks.append(message.strip())
    if changes:
        risks.append(UNCOMMITTED_RISK)

    return HandoffData(
        timestamp=_now_iso(now),
        branch=branch or snapshot.branch,
        current_phase=snapshot.current_phase,
        recent_commits=recent,
        uncommitted_changes=tuple(changes),
        completed_this_session=tuple(
            task for task in snapshot.completed_tasks if _completed_in(task, recent)
        ),
        next_tasks=snapshot.pending_tasks[:HANDOFF_NEXT_TASKS],
        risks=tuple(risks),
    )


__all__ = [
    "REASON_COMPLETE_NO_COMMIT",
    "REASON_COMPLETE_WITH_COMMIT",
    "REASON_NOT_STARTED",
    "REASON_PARTIAL",
    "build_checkpoint",
    "build_handoff",
    "find_task_commit",
    "resolve_target_phase",
    "verify_task",
]
