"""Scaffold documents written by ``software-loop init``.

Every template is a pure function of :class:`ScaffoldParams`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(slots=True, frozen=True)
class ScaffoldParams:
    project_name: str
    today: date

    @property
    def date_text(self) -> str:
        return self.today.isoformat()


def render_plan(params: ScaffoldParams) -> str:
    return f"""# PRP: {params.project_name}

**Version:** 1.0 (Seed Context Format)
**Status:** Active - Phase 0 (Planning)
**Branch:** main
**Last Updated:** {params.date_text}

---

## 0. Seed Context (Bootstrap Snapshot)

### Project Summary
<!-- 3-5 sentences describing what this project does and its current state -->
[TODO: Describe your project here]

### Current Status
| Phase | Status | Notes |
|-------|--------|-------|
| Phase 0 - Planning | 🔄 Active | Define requirements and architecture |
| Phase 1 - Foundation | 📋 Planned | Core infrastructure |
| Phase 2 - Features | 📋 Planned | Main functionality |
| Phase 3 - Polish | 📋 Planned | Testing, docs, refinement |

### Repository Map
```
{params.project_name}/
├── .claude/commands/    # Workflow slash commands
├── docs/                # Documentation
├── src/                 # Source code
├── PRP.md               # This file (Seed Context)
├── PROGRESS.md          # Session logs
├── software-loop.yaml   # Tool settings
└── README.md            # Project overview
```

### Critical Constraints
1. [TODO: Add constraint]
2. [TODO: Add constraint]

---

## 1. North Star Goal (Long-term Vision)

> [TODO: Single paragraph describing the ultimate goal of this project]

---

## 2. Architecture Summary

| Component | Purpose | Status |
|-----------|---------|--------|
| [TODO] | [TODO] | 📋 Planned |

---

## 5. Phase Plan (Execution Roadmap)

### Phase 0: Planning (ACTIVE)
**Objective:** Define requirements, architecture, and constraints.

**Tasks:**
- [ ] 0.1: Define project scope and North Star goal
- [ ] 0.2: Design architecture and components
- [ ] 0.3: Identify critical constraints
- [ ] 0.4: Create initial task breakdown for Phase 1

---

### Phase 1: Foundation
**Objective:** [TODO]

**Tasks:**
- [ ] 1.1: [TODO]
- [ ] 1.2: [TODO]

Mark a task done with `- [x]` and record its commit as `(commit: <hash>)`.

---

## 7. Handoff Protocol

Run `software-loop handoff` at the end of every session; it appends a
handoff block to PROGRESS.md.
"""


def render_progress(params: ScaffoldParams) -> str:
    return f"""# PROGRESS.md - {params.project_name}

## Project Overview
**PRP:** {params.project_name}
**Branch:** main
**Started:** {params.date_text}

---

## Session Log: {params.date_text} (Session 1)

**Agent:** [Your AI model]
**Phase Attempted:** Phase 0 (Planning)

### Verification Matrix

| PRP Task ID | Git Commit Hash | Status | Confidence Score |
| :--- | :--- | :--- | :--- |
| Project Init | initial | ✅ Complete | 100% (Software Loop scaffold) |

### Context Handoff Note

*To the next Agent: Project initialized with Software Loop structure. Start by filling in PRP.md Section 0 (Seed Context) with project details, then proceed to define Phase 1 tasks.*

---

## Session Log Template (Copy for next session)

```
## Session Log: [Date]

**Agent:** [Model name]
**Phase Attempted:** Phase N (Name)

### Context Handoff Note

*To the next Agent: [What was done, what failed, what to do next]*
```
"""


def render_readme(params: ScaffoldParams) -> str:
    return f"""# {params.project_name}

Planned and tracked with software-loop.

- `PRP.md` holds the phase plan and task checklist.
- `PROGRESS.md` is the append-only session journal.

```bash
software-loop status        # where the project stands
software-loop checkpoint    # verify the current phase against git history
software-loop handoff       # leave a note for the next session
```
"""


def render_project_config(params: ScaffoldParams) -> str:
    return f"""# software-loop settings for {params.project_name}
journal_file: PROGRESS.md
# build_command: make
commit_limit: 20
"""


_COMMAND_DOCS: dict[str, tuple[str, str]] = {
    "prp.md": (
        "/prp - Project Requirements & Plan Status",
        "Run `software-loop status --json` and summarize the current phase, progress and pending tasks.",
    ),
    "checkpoint.md": (
        "/checkpoint - Phase Completion Verification",
        "Run `software-loop checkpoint --build --json`, report the verification matrix and "
        "overall confidence, and fix any task reported as partial or not started.",
    ),
    "handoff.md": (
        "/handoff - Session Context Handoff",
        "Commit or stash pending work, then run `software-loop handoff --message \"<risks>\"` "
        "and complete the TODO lines it appends to PROGRESS.md.",
    ),
}


def render_command_docs(params: ScaffoldParams) -> dict[str, str]:
    """Return slash-command documents keyed by file name."""

    return {
        name: f"# {title}\n\nProject: {params.project_name}\n\n{body}\n"
        for name, (title, body) in _COMMAND_DOCS.items()
    }


def render_scaffold(params: ScaffoldParams) -> dict[str, str]:
    """Return every scaffold file keyed by its path relative to the project root."""

    files = {
        "PRP.md": render_plan(params),
        "PROGRESS.md": render_progress(params),
        "README.md": render_readme(params),
        "software-loop.yaml": render_project_config(params),
    }
    for name, content in render_command_docs(params).items():
        files[f".claude/commands/{name}"] = content
    return files


__all__ = [
    "ScaffoldParams",
    "render_command_docs",
    "render_plan",
    "render_progress",
    "render_project_config",
    "render_readme",
    "render_scaffold",
]
