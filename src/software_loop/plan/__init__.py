"""Plan and Journal parsing."""

from .loader import (
    PlanNotFoundError,
    PlanSources,
    ProjectConfig,
    ProjectConfigError,
    SoftwareLoopError,
    load_project_config,
    locate_plan,
    read_plan,
    read_session,
)
from .models import PhaseInfo, PhaseSummary, PlanSnapshot, PlanStats, SessionInfo, Task
from .parser import build_snapshot, read_last_session

__all__ = [
    "PhaseInfo",
    "PhaseSummary",
    "PlanNotFoundError",
    "PlanSnapshot",
    "PlanSources",
    "PlanStats",
    "ProjectConfig",
    "ProjectConfigError",
    "SessionInfo",
    "SoftwareLoopError",
    "Task",
    "build_snapshot",
    "load_project_config",
    "locate_plan",
    "read_last_session",
    "read_plan",
    "read_session",
]
