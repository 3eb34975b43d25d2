"""Typed records parsed from the Plan and Journal documents."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PlanLifecycle = Literal["active", "paused", "complete"]
PhaseLifecycle = Literal["complete", "active", "planned"]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class PhaseInfo(_Record):
    """Identifies a phase without its task tallies."""

    id: int = Field(..., ge=0, description="Phase number from the status table (0 for the synthetic phase).")
    name: str = Field(..., description="Phase name as written in the status table.")
    lifecycle_state: PhaseLifecycle = Field(..., description="Lifecycle derived from the status glyph.")

    @property
    def label(self) -> str:
        return f"Phase {self.id} - {self.name}"


class PhaseSummary(PhaseInfo):
    """A status-table row together with its checkbox tallies."""

    tasks_complete: int = Field(default=0, ge=0)
    tasks_total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_tallies(self) -> "PhaseSummary":
        if self.tasks_complete > self.tasks_total:
            raise ValueError("tasks_complete cannot exceed tasks_total")
        return self

    def info(self, lifecycle_state: PhaseLifecycle | None = None) -> PhaseInfo:
        return PhaseInfo(
            id=self.id,
            name=self.name,
            lifecycle_state=lifecycle_state or self.lifecycle_state,
        )


class Task(_Record):
    """A single checkbox line from the Plan."""

    id: str = Field(..., description="Task identifier in '<phase>.<n>' form.")
    description: str = Field(..., description="Task text with any commit annotation removed.")
    completed: bool
    phase: int = Field(..., ge=0)
    commit_hash: str | None = Field(default=None, description="Hash from an inline '(commit: ...)' note.")


class PlanStats(_Record):
    total_phases: int = 0
    completed_phases: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    progress_percent: int = Field(default=0, ge=0, le=100)


class PlanSnapshot(_Record):
    """Aggregate view of the Plan, rebuilt on every read."""

    project_name: str
    format_version: str
    lifecycle_state: PlanLifecycle
    branch: str
    last_updated: str
    current_phase: PhaseInfo
    phases: tuple[PhaseSummary, ...] = ()
    pending_tasks: tuple[Task, ...] = ()
    completed_tasks: tuple[Task, ...] = ()
    stats: PlanStats = Field(default_factory=PlanStats)

    def tasks_for_phase(self, phase_id: int) -> list[Task]:
        """Return the phase's tasks, pending ones first, each group in document order."""

        pending = [task for task in self.pending_tasks if task.phase == phase_id]
        completed = [task for task in self.completed_tasks if task.phase == phase_id]
        return pending + completed

    def find_phase(self, phase_id: int) -> PhaseSummary | None:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None


class SessionInfo(_Record):
    """The most recent session entry found in the Journal."""

    date: str
    session_number: int = 1
    agent: str = "Unknown"
    handoff_note: str | None = None


__all__ = [
    "PhaseInfo",
    "PhaseLifecycle",
    "PhaseSummary",
    "PlanLifecycle",
    "PlanSnapshot",
    "PlanStats",
    "SessionInfo",
    "Task",
]
