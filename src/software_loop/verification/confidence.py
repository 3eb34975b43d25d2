"""Deterministic confidence scoring from observable task signals.

Rules, first match wins:

* not complete and no work-in-progress commit: 0
* work-in-progress commit, task not marked complete: 50
* complete with commit and passing tests: 100
* complete with commit and failing tests: 60
* complete with commit, tests not evaluated: 90
* marked complete, no commit found: 70
"""

from __future__ import annotations

from typing import Iterable, Protocol

from ..plan.parser import round_half_up


class _Scored(Protocol):
    confidence: int


def compute_task_confidence(
    *,
    completed: bool,
    has_commit: bool,
    has_tests: bool = False,
    tests_pass: bool = False,
    is_partial: bool = False,
) -> int:
    if not completed and not is_partial:
        return 0
    if is_partial:
        return 50
    if completed:
        if has_commit and has_tests and tests_pass:
            return 100
        if has_commit and has_tests:
            return 60
        if has_commit:
            return 90
        return 70
    return 0


def compute_phase_confidence(entries: Iterable[_Scored]) -> int:
    """Mean confidence across entries, rounded half-up; 0 for an empty phase."""

    scores = [entry.confidence for entry in entries]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


__all__ = ["compute_phase_confidence", "compute_task_confidence"]
