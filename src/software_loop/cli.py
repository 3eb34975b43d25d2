"""software-loop command line interface."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import get_settings
from .journal import dumps, render_checkpoint, render_handoff, render_status, status_payload, wrap_error, wrap_output
from .operations import ProjectContext, init_project, load_status, run_checkpoint, run_handoff
from .plan import SoftwareLoopError
from .server import configure_logging
from .server import main as serve_main

logger = logging.getLogger(__name__)


def _fail(message: str, *, json_output: bool = False) -> None:
    if json_output:
        print(dumps(wrap_error(message)))
    else:
        print(f"\n❌ {message}\n")
    raise SystemExit(1)


def _context(args: argparse.Namespace) -> ProjectContext:
    return ProjectContext.discover(Path(args.root), settings=get_settings())


def cmd_init(args: argparse.Namespace) -> None:
    settings = get_settings()
    outcome = init_project(Path(args.root), args.name, git=args.git, git_path=settings.git_path)
    print(f"✅ Project initialized at {outcome.project_path}")
    if outcome.git_initialized:
        print("Git repository initialized with an initial commit.")
    for warning in outcome.warnings:
        print(f"⚠️  {warning}")
    print("\nNext steps:")
    print(f"  1. cd {outcome.project_path.name}")
    print("  2. Open PRP.md and fill in your project details")
    print("  3. Run 'software-loop status' to see where the project stands\n")


def cmd_status(args: argparse.Namespace) -> None:
    outcome = load_status(_context(args))
    if args.json:
        print(dumps(wrap_output(status_payload(outcome.snapshot, outcome.session))))
        return
    print(render_status(outcome.snapshot, outcome.session, phase_only=args.phase, tasks_only=args.tasks))


def cmd_checkpoint(args: argparse.Namespace) -> None:
    context = _context(args)
    outcome = run_checkpoint(
        context,
        phase_id=args.phase,
        run_build=args.build,
        append=not args.json or args.append,
        commit=args.commit,
    )
    if args.json:
        print(dumps(wrap_output(outcome.result)))
        return

    print(render_checkpoint(outcome.result))
    if not outcome.git.available:
        print(f"⚠️  Git not available ({outcome.git.error}); commits were not matched.")
    if outcome.git.changes:
        print("Uncommitted changes:")
        print("\n".join(f"  {change}" for change in outcome.git.changes))
    if outcome.journal_path is not None:
        print(f"\n✅ Checkpoint logged to {outcome.journal_path.name}")
    if outcome.committed:
        print("✅ Checkpoint commit created")


def cmd_handoff(args: argparse.Namespace) -> None:
    context = _context(args)
    outcome = run_handoff(context, message=args.message, append=not args.json or args.append)
    if args.json:
        print(dumps(wrap_output(outcome.handoff)))
        return

    if outcome.git.changes:
        print("⚠️  Uncommitted changes detected:")
        print("\n".join(f"  {change}" for change in outcome.git.changes))
        print()
    if outcome.journal_path is not None:
        print(f"✅ Handoff note added to {outcome.journal_path.name}")
        print(f"Edit {outcome.journal_path.name} to complete the handoff details.\n")
    else:
        print("### Handoff Note\n")
        print(render_handoff(outcome.handoff))


def cmd_serve(args: argparse.Namespace) -> None:
    serve_main(Path(args.root))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="software-loop",
        description="Track PRP.md phases and PROGRESS.md sessions against git history",
    )
    parser.add_argument("--root", default=".", help="Project directory (defaults to the current directory)")
    sub = parser.add_subparsers(dest="cmd")

    p_init = sub.add_parser("init", help="Initialize a new project with PRP structure")
    p_init.add_argument("-n", "--name", required=True, help="Project name")
    p_init.add_argument("--no-git", dest="git", action="store_false", help="Skip git initialization")
    p_init.set_defaults(func=cmd_init)

    p_status = sub.add_parser("status", help="Show PRP status, current phase, and pending tasks")
    p_status.add_argument("-p", "--phase", action="store_true", help="Show current phase details only")
    p_status.add_argument("-t", "--tasks", action="store_true", help="Show pending tasks only")
    p_status.add_argument("-j", "--json", action="store_true", help="Output JSON")
    p_status.set_defaults(func=cmd_status)

    p_checkpoint = sub.add_parser("checkpoint", help="Verify phase completion and update progress")
    p_checkpoint.add_argument("-p", "--phase", type=int, default=None, help="Verify a specific phase")
    p_checkpoint.add_argument("-b", "--build", action="store_true", help="Run the project build as part of verification")
    p_checkpoint.add_argument("--no-commit", dest="commit", action="store_false", help="Skip creating a checkpoint commit")
    p_checkpoint.add_argument("--append", action="store_true", help="Append to the journal even with --json")
    p_checkpoint.add_argument("-j", "--json", action="store_true", help="Output JSON")
    p_checkpoint.set_defaults(func=cmd_checkpoint)

    p_handoff = sub.add_parser("handoff", help="Generate a session handoff note for the next agent")
    p_handoff.add_argument("-m", "--message", default=None, help="Additional notes to include")
    p_handoff.add_argument("--append", action="store_true", help="Append to the journal even with --json")
    p_handoff.add_argument("-j", "--json", action="store_true", help="Output JSON")
    p_handoff.set_defaults(func=cmd_handoff)

    p_serve = sub.add_parser("serve", help="Run the MCP server for this project")
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return

    json_output = getattr(args, "json", False)
    try:
        configure_logging(get_settings().log_level)
        args.func(args)
    except ValidationError as exc:
        problems = "; ".join(error["msg"] for error in exc.errors())
        _fail(f"Invalid configuration: {problems}", json_output=json_output)
    except SoftwareLoopError as exc:
        logger.debug("Command failed", extra={"command": args.cmd, "error": str(exc)})
        _fail(str(exc), json_output=json_output)


if __name__ == "__main__":
    main(sys.argv[1:])
