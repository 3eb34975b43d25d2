"""Line scanners for the Plan (PRP.md) and Journal (PROGRESS.md) grammar.

The grammar is deliberately small: labelled ``**Field:** value`` lines, a phase
status table, checkbox task lines and dated session headers. Every scanner
works on one line at a time and returns either a :class:`LineMatch` or
:data:`SKIP`; lines that do not fit the grammar are never an error.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Generic, Iterable, TypeVar, Union

from .models import (
    PhaseInfo,
    PhaseLifecycle,
    PhaseSummary,
    PlanLifecycle,
    PlanSnapshot,
    PlanStats,
    SessionInfo,
    Task,
)

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class LineMatch(Generic[T]):
    """A line that fit the grammar, carrying the parsed value."""

    value: T


class _Skip:
    __slots__ = ()

    def __repr__(self) -> str:
        return "SKIP"

    def __bool__(self) -> bool:
        return False


SKIP = _Skip()

ScanResult = Union[LineMatch[T], _Skip]


@dataclass(slots=True, frozen=True)
class PhaseRow:
    id: int
    name: str
    lifecycle_state: PhaseLifecycle


@dataclass(slots=True, frozen=True)
class TaskLine:
    phase: int
    number: int
    completed: bool
    text: str

    @property
    def task_id(self) -> str:
        return f"{self.phase}.{self.number}"


@dataclass(slots=True, frozen=True)
class SessionHeader:
    date: str
    session_number: int


_PROJECT_HEADING = re.compile(r"^# PRP: (?P<name>.+)$")
_PHASE_ROW = re.compile(
    r"^\s*\|\s*Phase (?P<id>\d+) - (?P<name>.+?)\s*\|\s*(?P<glyph>\S+)\s+(?P<word>[^|]+?)\s*\|"
)
_TASK_LINE = re.compile(r"^- \[(?P<mark>[ x])\] (?P<phase>\d+)\.(?P<number>\d+): (?P<text>.*)$")
_COMMIT_NOTE = re.compile(r"\s*\(commit: (?P<hash>[0-9a-f]+)\)\s*")
_SESSION_HEADER = re.compile(
    r"^## Session Log: (?P<date>\d{4}-\d{2}-\d{2})(?: \(Session (?P<number>\d+)\))?"
)
_SECTION_BREAK = re.compile(r"^## ", re.MULTILINE)
_HANDOFF_NOTE = re.compile(r"\*To the next Agent: (?P<note>.+?)\*", re.DOTALL)

_GLYPH_STATES: dict[str, PhaseLifecycle] = {
    "✅": "complete",  # check mark
    "\U0001f504": "active",  # counterclockwise arrows
}

DEFAULT_PROJECT_NAME = "Unknown Project"
DEFAULT_FORMAT_VERSION = "1.0"
DEFAULT_BRANCH = "main"
DEFAULT_AGENT = "Unknown"
PLANNING_PHASE = PhaseInfo(id=0, name="Planning", lifecycle_state="active")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""

    return int(math.floor(value + 0.5))


# ----------------------------------------------------------------------
# Field extractor
# ----------------------------------------------------------------------


def extract_field(text: str, label: str) -> str | None:
    """Return the trimmed value of the first ``**label:** value`` line, if any."""

    prefix = f"**{label}:** "
    for line in text.splitlines():
        index = line.find(prefix)
        if index == -1:
            continue
        return line[index + len(prefix) :].strip() or None
    return None


def extract_project_name(text: str) -> str:
    for line in text.splitlines():
        match = _PROJECT_HEADING.match(line)
        if match:
            return match.group("name").strip()
    return DEFAULT_PROJECT_NAME


def extract_format_version(text: str) -> str:
    return extract_field(text, "Version") or DEFAULT_FORMAT_VERSION


def classify_lifecycle(status_text: str | None) -> PlanLifecycle:
    """Map free status text onto a plan lifecycle, checking 'complete' before 'paused'."""

    if not status_text:
        return "active"
    lowered = status_text.lower()
    if "complete" in lowered:
        return "complete"
    if "paused" in lowered:
        return "paused"
    return "active"


def extract_lifecycle(text: str) -> PlanLifecycle:
    return classify_lifecycle(extract_field(text, "Status"))


def extract_branch(text: str) -> str:
    return extract_field(text, "Branch") or DEFAULT_BRANCH


def extract_last_updated(text: str, today: date | None = None) -> str:
    value = extract_field(text, "Last Updated")
    if value:
        return value
    return (today or date.today()).isoformat()


# ----------------------------------------------------------------------
# Phase table
# ----------------------------------------------------------------------


def scan_phase_row(line: str) -> ScanResult[PhaseRow]:
    match = _PHASE_ROW.match(line)
    if not match:
        return SKIP
    phase_id = int(match.group("id"))
    glyph = match.group("glyph")
    state = next((value for key, value in _GLYPH_STATES.items() if key in glyph), "planned")
    return LineMatch(PhaseRow(id=phase_id, name=match.group("name").strip(), lifecycle_state=state))


def read_phases(text: str) -> list[PhaseSummary]:
    """Read the status table in document order; duplicate ids are kept."""

    lines = text.splitlines()
    phases: list[PhaseSummary] = []
    for line in lines:
        result = scan_phase_row(line)
        if result is SKIP:
            continue
        row = result.value
        complete, total = count_phase_tasks(lines, row.id)
        phases.append(
            PhaseSummary(
                id=row.id,
                name=row.name,
                lifecycle_state=row.lifecycle_state,
                tasks_complete=complete,
                tasks_total=total,
            )
        )
    return phases


# ----------------------------------------------------------------------
# Task lines
# ----------------------------------------------------------------------


def scan_task_line(line: str) -> ScanResult[TaskLine]:
    match = _TASK_LINE.match(line)
    if not match:
        return SKIP
    return LineMatch(
        TaskLine(
            phase=int(match.group("phase")),
            number=int(match.group("number")),
            completed=match.group("mark") == "x",
            text=match.group("text"),
        )
    )


def count_phase_tasks(lines: Iterable[str], phase_id: int) -> tuple[int, int]:
    """Return ``(completed, total)`` checkbox counts for one phase."""

    complete = total = 0
    for line in lines:
        result = scan_task_line(line)
        if result is SKIP or result.value.phase != phase_id:
            continue
        total += 1
        if result.value.completed:
            complete += 1
    return complete, total


def split_commit_note(text: str) -> tuple[str, str | None]:
    """Strip a ``(commit: <hex>)`` note from task text and return ``(text, hash)``."""

    match = _COMMIT_NOTE.search(text)
    if not match:
        return text.strip(), None
    cleaned = (text[: match.start()] + " " + text[match.end() :]).strip()
    return cleaned, match.group("hash")


def read_tasks(text: str) -> list[Task]:
    tasks: list[Task] = []
    for line in text.splitlines():
        result = scan_task_line(line)
        if result is SKIP:
            continue
        entry = result.value
        description, commit_hash = split_commit_note(entry.text)
        tasks.append(
            Task(
                id=entry.task_id,
                description=description,
                completed=entry.completed,
                phase=entry.phase,
                commit_hash=commit_hash,
            )
        )
    return tasks


# ----------------------------------------------------------------------
# Snapshot
# ----------------------------------------------------------------------


def resolve_current_phase(phases: list[PhaseSummary]) -> PhaseInfo:
    for phase in phases:
        if phase.lifecycle_state == "active":
            return phase.info()
    for phase in phases:
        if phase.lifecycle_state == "planned":
            return phase.info()
    if phases:
        return phases[-1].info("complete")
    return PLANNING_PHASE


def build_snapshot(text: str, *, today: date | None = None) -> PlanSnapshot:
    """Parse Plan text into a :class:`PlanSnapshot`. Never raises on malformed content."""

    phases = read_phases(text)
    tasks = read_tasks(text)
    pending = tuple(task for task in tasks if not task.completed)
    completed = tuple(task for task in tasks if task.completed)

    stats = PlanStats(
        total_phases=len(phases),
        completed_phases=sum(1 for phase in phases if phase.lifecycle_state == "complete"),
        total_tasks=len(tasks),
        completed_tasks=len(completed),
        progress_percent=round_half_up(len(completed) / len(tasks) * 100) if tasks else 0,
    )

    return PlanSnapshot(
        project_name=extract_project_name(text),
        format_version=extract_format_version(text),
        lifecycle_state=extract_lifecycle(text),
        branch=extract_branch(text),
        last_updated=extract_last_updated(text, today),
        current_phase=resolve_current_phase(phases),
        phases=tuple(phases),
        pending_tasks=pending,
        completed_tasks=completed,
        stats=stats,
    )


# ----------------------------------------------------------------------
# Journal
# ----------------------------------------------------------------------


def scan_session_header(line: str) -> ScanResult[SessionHeader]:
    match = _SESSION_HEADER.match(line)
    if not match:
        return SKIP
    number = match.group("number")
    return LineMatch(SessionHeader(date=match.group("date"), session_number=int(number) if number else 1))


def read_last_session(text: str) -> SessionInfo | None:
    """Return the textually-last session entry in the Journal.

    Dates are not compared: an out-of-order Journal yields whichever header
    appears last in the file.
    """

    last: SessionHeader | None = None
    last_offset = 0
    offset = 0
    for line in text.splitlines(keepends=True):
        result = scan_session_header(line)
        if result is not SKIP:
            last = result.value
            last_offset = offset
        offset += len(line)

    if last is None:
        return None

    block_start = text.find("\n", last_offset)
    block_start = len(text) if block_start == -1 else block_start + 1
    next_section = _SECTION_BREAK.search(text, block_start)
    block = text[block_start : next_section.start() if next_section else len(text)]

    agent = extract_field(block, "Agent") or DEFAULT_AGENT
    note_match = _HANDOFF_NOTE.search(block)
    handoff_note = note_match.group("note").strip() if note_match else None

    return SessionInfo(
        date=last.date,
        session_number=last.session_number,
        agent=agent,
        handoff_note=handoff_note,
    )


__all__ = [
    "DEFAULT_BRANCH",
    "LineMatch",
    "PLANNING_PHASE",
    "SKIP",
    "PhaseRow",
    "SessionHeader",
    "TaskLine",
    "build_snapshot",
    "classify_lifecycle",
    "count_phase_tasks",
    "extract_branch",
    "extract_field",
    "extract_format_version",
    "extract_last_updated",
    "extract_lifecycle",
    "extract_project_name",
    "read_last_session",
    "read_phases",
    "read_tasks",
    "resolve_current_phase",
    "round_half_up",
    "scan_phase_row",
    "scan_session_header",
    "scan_task_line",
    "split_commit_note",
]
