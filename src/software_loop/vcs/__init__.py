"""Version control and build probes."""

from .build import detect_build_command, run_build_probe
from .runner import FakeGitRunner, GitExecutionResult, GitNotFoundError, GitRunner, GitRunnerError
from .source import GitSnapshot, GitSource, run_sync

__all__ = [
    "FakeGitRunner",
    "GitExecutionResult",
    "GitNotFoundError",
    "GitRunner",
    "GitRunnerError",
    "GitSnapshot",
    "GitSource",
    "detect_build_command",
    "run_build_probe",
    "run_sync",
]
