"""Text, JSON and journal-block renderings of engine results."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from .. import __version__
from ..plan.models import PlanSnapshot, SessionInfo
from ..verification.models import CheckpointResult, HandoffData

_STATUS_MARKS = {
    "complete": "✅ Complete",
    "partial": "⚠️ Partial",
    "not_started": "❌ Not started",
}

_PHASE_MARKS = {
    "complete": "✅",
    "active": "🔄",
    "planned": "📋",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def wrap_output(data: Any) -> dict[str, Any]:
    return {
        "success": True,
        "data": to_payload(data),
        "timestamp": _timestamp(),
        "version": __version__,
    }


def wrap_error(error: str) -> dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "timestamp": _timestamp(),
        "version": __version__,
    }


def dumps(envelope: dict[str, Any]) -> str:
    return json.dumps(envelope, indent=2, ensure_ascii=False)


def status_payload(snapshot: PlanSnapshot, session: SessionInfo | None) -> dict[str, Any]:
    payload = snapshot.model_dump(mode="json")
    payload["last_session"] = session.model_dump(mode="json") if session else None
    return payload


# ----------------------------------------------------------------------
# Text renderings
# ----------------------------------------------------------------------


def render_status(
    snapshot: PlanSnapshot,
    session: SessionInfo | None = None,
    *,
    phase_only: bool = False,
    tasks_only: bool = False,
) -> str:
    full = not phase_only and not tasks_only
    lines = [f"## PRP Status: {snapshot.project_name}", ""]

    if full:
        stats = snapshot.stats
        lines += [
            "### Bootstrap Snapshot",
            f"Status: {snapshot.lifecycle_state}",
            f"Version: {snapshot.format_version}",
            f"Branch: {snapshot.branch}",
            f"Last Updated: {snapshot.last_updated}",
            f"Progress: {stats.completed_tasks}/{stats.total_tasks} tasks ({stats.progress_percent}%), "
            f"{stats.completed_phases}/{stats.total_phases} phases complete",
            "",
        ]

    if full or phase_only:
        current = snapshot.current_phase
        lines += ["### Current Phase", f"{current.label} ({current.lifecycle_state})", ""]
        if full and snapshot.phases:
            lines += ["| Phase | Status | Tasks |", "| :--- | :--- | :--- |"]
            for phase in snapshot.phases:
                mark = _PHASE_MARKS[phase.lifecycle_state]
                lines.append(
                    f"| {phase.label} | {mark} {phase.lifecycle_state} | "
                    f"{phase.tasks_complete}/{phase.tasks_total} |"
                )
            lines.append("")

    if full or tasks_only:
        lines.append("### Pending Tasks")
        if snapshot.pending_tasks:
            lines += [f"  ○ {task.id}: {task.description}" for task in snapshot.pending_tasks]
        else:
            lines.append("  No pending tasks found.")
        lines.append("")

    if full and session is not None:
        lines += ["### Last Session", f"{session.date} (Session {session.session_number}) - Agent: {session.agent}"]
        if session.handoff_note:
            lines.append(f"Handoff: {session.handoff_note}")
        lines.append("")

    return "\n".join(lines)


def _matrix_table(result: CheckpointResult) -> list[str]:
    lines = ["| Task | Status | Commit | Confidence | Notes |", "| :--- | :--- | :--- | :--- | :--- |"]
    for entry in result.verification_matrix:
        lines.append(
            f"| {entry.task_id} | {_STATUS_MARKS[entry.status]} | {entry.commit_hash or '-'} | "
            f"{entry.confidence}% | {entry.reason} |"
        )
    return lines


def _build_line(result: CheckpointResult) -> str:
    build = result.build_status
    if not build.attempted:
        return "Build: not attempted"
    if build.passed:
        return f"Build: ✅ Passed (`{build.command}`)"
    return f"Build: ❌ Failed (`{build.command}`)"


def render_checkpoint(result: CheckpointResult) -> str:
    lines = [f"## Checkpoint: {result.phase.label}", "", "### Verification Matrix", ""]
    if result.verification_matrix:
        lines += _matrix_table(result)
    else:
        lines.append("No tasks found for this phase.")
    lines += [
        "",
        _build_line(result),
        f"Overall confidence: {result.overall_confidence}%",
        f"Result: {'PASSED' if result.passed else 'NOT PASSED'}",
        result.summary,
        "",
    ]
    return "\n".join(lines)


def render_handoff(handoff: HandoffData) -> str:
    return handoff_block(handoff).strip("-\n") + "\n"


# ----------------------------------------------------------------------
# Journal blocks
# ----------------------------------------------------------------------


def _date_part(timestamp: str) -> str:
    return timestamp.split("T", 1)[0]


def checkpoint_block(result: CheckpointResult, git_log: list[str] | None = None) -> str:
    matrix = "\n".join(
        f"- [{'x' if entry.status == 'complete' else ' '}] {entry.task_id}: {entry.description} "
        f"({entry.status}, {entry.confidence}% - {entry.reason})"
        for entry in result.verification_matrix
    ) or "- No tasks found for this phase"
    log_text = "\n".join(git_log or []) or "No commits"
    lines = [
        "",
        "---",
        "",
        f"## Checkpoint: {_date_part(result.timestamp)}",
        "",
        f"**Phase:** {result.phase.label}",
        f"**Confidence:** {result.overall_confidence}%",
        f"**Result:** {'Passed' if result.passed else 'Not passed'}",
        "",
        "### Verification Matrix",
        matrix,
        "",
        "### Build Verification",
        f"- {_build_line(result)}",
    ]
    build = result.build_status
    if build.attempted and not build.passed and getattr(build, "error", ""):
        lines += ["", "```", build.error, "```"]
    lines += ["", "### Git Log", "```", log_text, "```", "", result.summary, ""]
    return "\n".join(lines)


def handoff_block(handoff: HandoffData) -> str:
    stamp = handoff.timestamp.replace("T", " ", 1)[:19]
    commits = "\n".join(f"{commit.hash} {commit.message}" for commit in handoff.recent_commits) or "No commits"
    changed = "\n".join(
        f"- {task.id}: {task.description}" for task in handoff.completed_this_session
    ) or "- [TODO: List your changes]"
    next_tasks = "\n".join(f"- {task.id}: {task.description}" for task in handoff.next_tasks) or "- [No pending tasks found]"
    risks = "\n".join(f"- {risk}" for risk in handoff.risks) or "- [None noted]"
    uncommitted = ""
    if handoff.uncommitted_changes:
        uncommitted = "\n### Uncommitted changes\n```\n" + "\n".join(handoff.uncommitted_changes) + "\n```\n"

    return f"""
---

## Session Handoff: {stamp}

**Current Phase:** {handoff.current_phase.label}
**Agent:** [TODO: Your model name]
**Branch:** {handoff.branch}

### What was changed
{changed}

### Recent Commits
```
{commits}
```
{uncommitted}
### What's next
{next_tasks}

### Known risks
{risks}

### Questions for next agent
- [None]

---
"""


__all__ = [
    "checkpoint_block",
    "dumps",
    "handoff_block",
    "render_checkpoint",
    "render_handoff",
    "render_status",
    "status_payload",
    "to_payload",
    "wrap_error",
    "wrap_output",
]
