"""Confidence scoring and verification matrices."""

from .confidence import compute_phase_confidence, compute_task_confidence
from .matrix import build_checkpoint, build_handoff, verify_task
from .models import (
    BuildFailed,
    BuildNotAttempted,
    BuildPassed,
    BuildStatus,
    CheckpointResult,
    CommitInfo,
    HandoffData,
    VerificationEntry,
)

__all__ = [
    "BuildFailed",
    "BuildNotAttempted",
    "BuildPassed",
    "BuildStatus",
    "CheckpointResult",
    "CommitInfo",
    "HandoffData",
    "VerificationEntry",
    "build_checkpoint",
    "build_handoff",
    "compute_phase_confidence",
    "compute_task_confidence",
    "verify_task",
]
