from __future__ import annotations

import json
from pathlib import Path
import shutil
import subprocess
import textwrap

import pytest

from software_loop import cli
from software_loop.config import get_settings
from software_loop.vcs import FakeGitRunner, GitExecutionResult, GitSource


PLAN = textwrap.dedent(
    """
    # PRP: CLI Test

    **Status:** Active - Phase 1

    | Phase 1 - Foundation | 🔄 Active | |

    - [x] 1.1: Scaffold (commit: abc1234)
    - [x] 1.2: Parser
    - [ ] 1.3: Renderer
    """
).lstrip()

JOURNAL = "# PROGRESS.md - CLI Test\n\n## Session Log: 2026-01-02\n\n**Agent:** Model Q\n"


def _ok(stdout: str = "") -> GitExecutionResult:
    return GitExecutionResult(args=(), returncode=0, stdout=stdout, stderr="")


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def fake_git(monkeypatch: pytest.MonkeyPatch) -> FakeGitRunner:
    fake = FakeGitRunner(
        {
            "branch": _ok("main\n"),
            "log": _ok("abc1234\x1ffeat: 1.1 scaffold\x1f2026-01-01\x1e"),
            "status": _ok("?? scratch.txt\n"),
        }
    )
    monkeypatch.setattr(GitSource, "for_directory", staticmethod(lambda root, git_path=None: GitSource(fake)))
    return fake


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    (tmp_path / "PRP.md").write_text(PLAN, encoding="utf-8")
    (tmp_path / "PROGRESS.md").write_text(JOURNAL, encoding="utf-8")
    return tmp_path


def test_status_text(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "status"])

    out = capsys.readouterr().out
    assert "## PRP Status: CLI Test" in out
    assert "○ 1.3: Renderer" in out
    assert "Agent: Model Q" in out


def test_status_json_envelope(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "status", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is True
    assert payload["data"]["stats"]["progress_percent"] == 67
    assert payload["data"]["last_session"]["agent"] == "Model Q"


def test_status_without_plan_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--root", str(tmp_path), "status"])

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "❌ No PRP.md found" in out
    assert "software-loop init" in out


def test_status_without_plan_json_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--root", str(tmp_path), "status", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["success"] is False
    assert "No PRP.md found" in payload["error"]


def test_checkpoint_appends_to_journal(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "checkpoint"])

    out = capsys.readouterr().out
    assert "## Checkpoint: Phase 1 - Foundation" in out
    assert "Result: NOT PASSED" in out
    assert "✅ Checkpoint logged to PROGRESS.md" in out
    assert "?? scratch.txt" in out

    journal = (project / "PROGRESS.md").read_text(encoding="utf-8")
    assert journal.startswith(JOURNAL)
    assert "**Phase:** Phase 1 - Foundation" in journal
    assert all(call[0] != "commit" for call in fake_git.invocations)


def test_checkpoint_json_leaves_journal_alone(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "checkpoint", "--phase", "1", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["data"]["phase"]["id"] == 1
    assert payload["data"]["overall_confidence"] == 53
    assert (project / "PROGRESS.md").read_text(encoding="utf-8") == JOURNAL


def test_checkpoint_json_with_append(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "checkpoint", "--json", "--append"])

    json.loads(capsys.readouterr().out)
    assert "## Checkpoint:" in (project / "PROGRESS.md").read_text(encoding="utf-8")


def test_checkpoint_commits_when_phase_passes(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    (project / "PRP.md").write_text(PLAN.replace("- [ ] 1.3", "- [x] 1.3"), encoding="utf-8")

    cli.main(["--root", str(project), "checkpoint"])

    out = capsys.readouterr().out
    assert "Result: PASSED" in out
    assert "✅ Checkpoint commit created" in out
    assert ("commit", "-m", "checkpoint: Phase 1 - Foundation verified", "--", "PROGRESS.md") in fake_git.invocations


def test_checkpoint_no_commit_flag(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    (project / "PRP.md").write_text(PLAN.replace("- [ ] 1.3", "- [x] 1.3"), encoding="utf-8")

    cli.main(["--root", str(project), "checkpoint", "--no-commit"])

    assert "commit created" not in capsys.readouterr().out
    assert all(call[0] != "commit" for call in fake_git.invocations)


def test_checkpoint_with_build(project: Path, fake_git: FakeGitRunner, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("SOFTWARE_LOOP_BUILD_COMMAND", "echo broken; exit 2")

    cli.main(["--root", str(project), "checkpoint", "--build", "--json"])

    payload = json.loads(capsys.readouterr().out)
    build = payload["data"]["build_status"]
    assert build["outcome"] == "failed"
    assert "broken" in build["error"]
    assert payload["data"]["summary"] == "Phase 1 not verified: 1 incomplete task; build failed."


def test_handoff_appends_template(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "handoff", "-m", "renderer blocked on fonts"])

    out = capsys.readouterr().out
    assert "⚠️  Uncommitted changes detected:" in out
    assert "✅ Handoff note added to PROGRESS.md" in out

    journal = (project / "PROGRESS.md").read_text(encoding="utf-8")
    assert "## Session Handoff:" in journal
    assert "- renderer blocked on fonts" in journal
    assert "- 1.1: Scaffold" in journal


def test_handoff_without_journal_prints_block(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    (project / "PROGRESS.md").unlink()

    cli.main(["--root", str(project), "handoff"])

    out = capsys.readouterr().out
    assert "### Handoff Note" in out
    assert "## Session Handoff:" in out
    assert not (project / "PROGRESS.md").exists()


def test_handoff_json(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "handoff", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["data"]["branch"] == "main"
    assert [task["id"] for task in payload["data"]["next_tasks"]] == ["1.3"]
    assert "Session Handoff" not in (project / "PROGRESS.md").read_text(encoding="utf-8")


def test_init_without_git(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(tmp_path), "init", "--name", "demo", "--no-git"])

    out = capsys.readouterr().out
    assert "✅ Project initialized" in out
    assert (tmp_path / "demo" / "PRP.md").is_file()
    assert (tmp_path / "demo" / "PROGRESS.md").is_file()


def test_init_with_git(tmp_path: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(tmp_path), "init", "-n", "demo"])

    out = capsys.readouterr().out
    assert "Git repository initialized" in out
    assert [call[0] for call in fake_git.invocations] == ["init", "add", "commit"]


def test_init_reports_git_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    fake = FakeGitRunner({"commit": GitExecutionResult(args=(), returncode=1, stdout="", stderr="Author identity unknown\n")})
    monkeypatch.setattr(GitSource, "for_directory", staticmethod(lambda root, git_path=None: GitSource(fake)))

    cli.main(["--root", str(tmp_path), "init", "-n", "demo"])

    out = capsys.readouterr().out
    assert "⚠️  Author identity unknown" in out
    assert "Git repository initialized" not in out


def test_init_rejects_existing_directory(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "demo").mkdir()

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--root", str(tmp_path), "init", "-n", "demo", "--no-git"])

    assert excinfo.value.code == 1
    assert 'Directory "demo" already exists.' in capsys.readouterr().out


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main([])

    assert "usage: software-loop" in capsys.readouterr().out


def test_checkpoint_of_phase_without_tasks_is_not_committed(project: Path, fake_git: FakeGitRunner, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--root", str(project), "checkpoint", "--phase", "99"])

    out = capsys.readouterr().out
    assert "Result: PASSED" in out
    assert "commit created" not in out
    assert all(call[0] != "commit" for call in fake_git.invocations)


def test_invalid_environment_reports_failure(project: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("SOFTWARE_LOOP_COMMIT_LIMIT", "0")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--root", str(project), "status"])

    assert excinfo.value.code == 1
    out = capsys.readouterr().out
    assert "❌ Invalid configuration" in out
    assert "SOFTWARE_LOOP_COMMIT_LIMIT must be >= 1" in out


def test_status_tolerates_invalid_utf8(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "PRP.md").write_bytes(b"# PRP: Bytes\n\n- [ ] 1.1: bad \xff byte\n")

    cli.main(["--root", str(tmp_path), "status"])

    assert "1.1: bad \ufffd byte" in capsys.readouterr().out


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(["git", *args], cwd=str(repo), capture_output=True, text=True, check=True)
    return completed.stdout


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_checkpoint_commit_leaves_other_staged_files(
    project: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(project / ".gitconfig-test"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for prefix in ("GIT_AUTHOR", "GIT_COMMITTER"):
        monkeypatch.setenv(f"{prefix}_NAME", "Loop Tester")
        monkeypatch.setenv(f"{prefix}_EMAIL", "loop@example.com")
    (project / "PRP.md").write_text(PLAN.replace("- [ ] 1.3", "- [x] 1.3"), encoding="utf-8")
    _git(project, "init", "-q")
    _git(project, "add", "PRP.md", "PROGRESS.md")
    _git(project, "commit", "-q", "-m", "initial")
    (project / "secret.txt").write_text("staged but unrelated\n", encoding="utf-8")
    _git(project, "add", "secret.txt")

    cli.main(["--root", str(project), "checkpoint", "--phase", "1"])

    assert "✅ Checkpoint commit created" in capsys.readouterr().out
    assert _git(project, "log", "-1", "--pretty=format:%s") == "checkpoint: Phase 1 - Foundation verified"
    assert _git(project, "show", "--name-only", "--pretty=format:", "HEAD").split() == ["PROGRESS.md"]
    assert _git(project, "diff", "--cached", "--name-only").split() == ["secret.txt"]
