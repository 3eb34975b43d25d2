"""Checkpoint and handoff result models."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..plan.models import PhaseInfo, Task

EntryStatus = Literal["complete", "partial", "not_started"]


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class CommitInfo(_Result):
    hash: str
    message: str
    date: str | None = None


class VerificationEntry(_Result):
    """One row of the verification matrix."""

    task_id: str
    description: str
    commit_hash: str | None = None
    status: EntryStatus
    confidence: int = Field(..., ge=0, le=100)
    reason: str


class BuildNotAttempted(_Result):
    """No build was run, either by request or because no build command was found."""

    outcome: Literal["not_attempted"] = "not_attempted"
    command: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def attempted(self) -> bool:
        return False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return False


class BuildPassed(_Result):
    outcome: Literal["passed"] = "passed"
    command: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def attempted(self) -> bool:
        return True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return True


class BuildFailed(_Result):
    outcome: Literal["failed"] = "failed"
    command: str
    error: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def attempted(self) -> bool:
        return True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return False


BuildStatus = Annotated[
    Union[BuildNotAttempted, BuildPassed, BuildFailed],
    Field(discriminator="outcome"),
]


class CheckpointResult(_Result):
    timestamp: str
    phase: PhaseInfo
    verification_matrix: tuple[VerificationEntry, ...] = ()
    build_status: BuildStatus = Field(default_factory=BuildNotAttempted)
    overall_confidence: int = Field(default=0, ge=0, le=100)
    passed: bool = False
    summary: str = ""

    @property
    def incomplete_entries(self) -> list[VerificationEntry]:
        return [entry for entry in self.verification_matrix if entry.status != "complete"]


class HandoffData(_Result):
    timestamp: str
    branch: str
    current_phase: PhaseInfo
    recent_commits: tuple[CommitInfo, ...] = ()
    uncommitted_changes: tuple[str, ...] = ()
    completed_this_session: tuple[Task, ...] = ()
    next_tasks: tuple[Task, ...] = ()
    risks: tuple[str, ...] = ()


__all__ = [
    "BuildFailed",
    "BuildNotAttempted",
    "BuildPassed",
    "BuildStatus",
    "CheckpointResult",
    "CommitInfo",
    "EntryStatus",
    "HandoffData",
    "VerificationEntry",
]
