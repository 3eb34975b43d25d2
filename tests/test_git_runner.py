from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from software_loop.vcs import (
    FakeGitRunner,
    GitExecutionResult,
    GitNotFoundError,
    GitRunner,
    GitSource,
)
from software_loop.vcs.source import parse_log, parse_status
from software_loop.vcs.utils import sanitize_environment


def _ok(stdout: str = "") -> GitExecutionResult:
    return GitExecutionResult(args=(), returncode=0, stdout=stdout, stderr="")


def test_git_runner_executes_script(tmp_path: Path) -> None:
    script = tmp_path / "git"
    script.write_text("#!/bin/sh\necho 'main'\n", encoding="utf-8")
    script.chmod(0o755)

    runner = GitRunner(tmp_path, script)
    result = asyncio.run(runner.current_branch())

    assert result.ok
    assert result.stdout.strip() == "main"


def test_git_runner_passes_arguments(tmp_path: Path) -> None:
    script = tmp_path / "git"
    script.write_text("#!/bin/sh\necho \"$@\"\n", encoding="utf-8")
    script.chmod(0o755)

    runner = GitRunner(tmp_path, script)
    result = asyncio.run(runner.commit("checkpoint: Phase 1 - Foundation verified"))

    assert result.ok
    assert result.stdout.strip() == "commit -m checkpoint: Phase 1 - Foundation verified"


def test_git_runner_runs_in_project_directory(tmp_path: Path) -> None:
    script = tmp_path / "git"
    script.write_text("#!/bin/sh\npwd\n", encoding="utf-8")
    script.chmod(0o755)
    project = tmp_path / "project"
    project.mkdir()

    result = asyncio.run(GitRunner(project, script).status())

    assert Path(result.stdout.strip()).resolve() == project.resolve()


def test_git_not_found(tmp_path: Path) -> None:
    with pytest.raises(GitNotFoundError):
        GitRunner(tmp_path, tmp_path / "missing")


def test_fake_git_runner_replays_and_records() -> None:
    fake = FakeGitRunner({"log": [_ok("first"), _ok("second")]})

    first = asyncio.run(fake.log(5))
    second = asyncio.run(fake.log(5))
    third = asyncio.run(fake.log(5))
    other = asyncio.run(fake.status())

    assert [first.stdout, second.stdout, third.stdout] == ["first", "second", "second"]
    assert other.ok and other.stdout == ""
    assert fake.invocations[0][:2] == ("log", "-5")
    assert fake.invocations[-1] == ("status", "--short")


def test_parse_log_keeps_subjects_intact() -> None:
    output = "abc1234\x1ffeat: 1.2 parser | table\x1f2026-01-10\x1e\ndef5678\x1ffix: spaces  \x1f\x1e\n"

    commits = parse_log(output)

    assert [(commit.hash, commit.message, commit.date) for commit in commits] == [
        ("abc1234", "feat: 1.2 parser | table", "2026-01-10"),
        ("def5678", "fix: spaces", None),
    ]


def test_parse_log_ignores_malformed_records() -> None:
    assert parse_log("") == []
    assert parse_log("no separators here\x1e") == []


def test_parse_status_drops_blank_lines() -> None:
    assert parse_status(" M src/app.py\n?? notes.txt\n\n") == [" M src/app.py", "?? notes.txt"]


def test_git_source_snapshot_from_fake_runner() -> None:
    fake = FakeGitRunner(
        {
            "branch": _ok("feature/x\n"),
            "log": _ok("abc1234\x1fwip 2.3\x1f2026-01-10\x1e"),
            "status": _ok(" M PRP.md\n"),
        }
    )

    snapshot = GitSource(fake).snapshot(10)

    assert snapshot.available is True
    assert snapshot.branch == "feature/x"
    assert [commit.hash for commit in snapshot.commits] == ["abc1234"]
    assert snapshot.changes == [" M PRP.md"]
    assert ("log", "-10", "--pretty=format:%h%x1f%s%x1f%cs%x1e") in fake.invocations


def test_git_source_outside_repository_is_unavailable() -> None:
    fake = FakeGitRunner(
        {"branch": GitExecutionResult(args=(), returncode=128, stdout="", stderr="fatal: not a git repository\n")}
    )

    snapshot = GitSource(fake).snapshot(10)

    assert snapshot.available is False
    assert snapshot.error == "fatal: not a git repository"
    assert snapshot.commits == []
    assert fake.invocations == [("branch", "--show-current")]


def test_empty_repository_has_no_commits() -> None:
    fake = FakeGitRunner(
        {
            "branch": _ok("main\n"),
            "log": GitExecutionResult(args=(), returncode=128, stdout="", stderr="fatal: no commits yet"),
        }
    )

    snapshot = GitSource(fake).snapshot(10)

    assert snapshot.available is True
    assert snapshot.commits == []


def test_git_source_without_runner() -> None:
    snapshot = GitSource(None).snapshot(5)

    assert snapshot.available is False
    assert snapshot.error


def test_for_directory_degrades_when_git_missing(tmp_path: Path) -> None:
    source = GitSource.for_directory(tmp_path, str(tmp_path / "no-git-here"))

    assert source.runner is None
    assert source.snapshot(5).available is False


def test_sanitize_environment_strips_repository_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_DIR", "/elsewhere/.git")
    monkeypatch.setenv("PYTHONPATH", "value")

    env = sanitize_environment({"EXTRA": "1"})

    assert "GIT_DIR" not in env
    assert "PYTHONPATH" not in env
    assert env["GIT_TERMINAL_PROMPT"] == "0"
    assert env["EXTRA"] == "1"
