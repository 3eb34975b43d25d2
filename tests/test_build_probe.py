from __future__ import annotations

import json
from pathlib import Path

from software_loop.verification import BuildFailed, BuildNotAttempted, BuildPassed
from software_loop.vcs import detect_build_command, run_build_probe


def test_detects_npm_build_script(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"scripts": {"build": "tsc"}}), encoding="utf-8")
    (tmp_path / "Makefile").write_text("all:\n", encoding="utf-8")

    assert detect_build_command(tmp_path) == "npm run build"


def test_package_json_without_build_falls_through(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"scripts": {"test": "jest"}}), encoding="utf-8")
    (tmp_path / "go.mod").write_text("module example.com/x\n", encoding="utf-8")

    assert detect_build_command(tmp_path) == "go build ./..."


def test_unreadable_package_json_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{not json", encoding="utf-8")

    assert detect_build_command(tmp_path) is None


def test_marker_precedence(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
    assert detect_build_command(tmp_path) == "python -m compileall -q ."

    (tmp_path / "Cargo.toml").write_text("[package]\n", encoding="utf-8")
    assert detect_build_command(tmp_path) == "cargo build"


def test_no_command_means_not_attempted(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path)

    assert status == BuildNotAttempted()
    assert status.attempted is False


def test_successful_command_passes(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path, "true")

    assert isinstance(status, BuildPassed)
    assert status.command == "true"


def test_failing_command_reports_output(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path, "echo boom; exit 3")

    assert isinstance(status, BuildFailed)
    assert status.attempted is True
    assert status.passed is False
    assert "boom" in status.error


def test_silent_failure_reports_exit_code(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path, "exit 4")

    assert isinstance(status, BuildFailed)
    assert status.error == "Build exited with code 4"


def test_timeout_fails_the_build(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path, "exec sleep 5", timeout=0.2)

    assert isinstance(status, BuildFailed)
    assert "timed out" in status.error


def test_build_runs_in_project_root(tmp_path: Path) -> None:
    status = run_build_probe(tmp_path, "test -f marker.txt || (echo missing; exit 1)")
    assert isinstance(status, BuildFailed)

    (tmp_path / "marker.txt").write_text("", encoding="utf-8")
    assert isinstance(run_build_probe(tmp_path, "test -f marker.txt"), BuildPassed)
