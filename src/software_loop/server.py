"""FastMCP server bootstrap for software-loop."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastmcp import Context, FastMCP

from . import __version__
from .config import LoopSettings, get_settings
from .operations import ProjectContext, load_status
from .plan import PlanNotFoundError, ProjectConfigError
from .tools import register_tools
from .vcs import GitSource


def configure_logging(level: str) -> None:
    """Configure root logging for the software-loop process."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_server(
    settings: Optional[LoopSettings] = None,
    project_root: Path | None = None,
    git_source: GitSource | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server bound to a project directory."""

    settings = settings or get_settings()
    root = Path(project_root or Path.cwd()).resolve()

    server = FastMCP(
        name="Software Loop",
        version=__version__,
        instructions=(
            "Software Loop tracks a project's PRP.md phase plan and PROGRESS.md journal. "
            "Use plan_status to see where the project stands, run_checkpoint to verify a "
            "phase against git history, and prepare_handoff at the end of a session."
        ),
    )

    handles = register_tools(
        server,
        settings=settings,
        project_root=root,
        git_source=git_source,
    )

    @server.resource(
        "resource://software-loop/status",
        name="software_loop_status",
        title="Software Loop Status",
        description="Summarizes the project's plan progress and server configuration.",
        mime_type="application/json",
        tags={"status", "plan"},
    )
    def status_resource(context: Context) -> str:
        """Return a JSON string summarizing plan progress."""

        plan: dict[str, object] | None = None
        plan_error: str | None = None
        try:
            outcome = load_status(ProjectContext.discover(root, settings=settings, git=git_source))
            plan = {
                "project_name": outcome.snapshot.project_name,
                "current_phase": outcome.snapshot.current_phase.model_dump(mode="json"),
                "stats": outcome.snapshot.stats.model_dump(mode="json"),
                "last_session": outcome.session.model_dump(mode="json") if outcome.session else None,
            }
        except (PlanNotFoundError, ProjectConfigError) as exc:
            plan_error = str(exc)

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "project_root": str(root),
            "files": {
                "plan": settings.plan_file,
                "journal": settings.journal_file,
            },
            "plan": plan,
            "error": plan_error,
            "request_id": getattr(context, "request_id", None),
        }
        return json.dumps(payload, ensure_ascii=False)

    setattr(server, "tool_handles", handles)
    setattr(server, "project_root", root)
    return server


def main(project_root: Path | None = None) -> None:
    """Entry point for running the software-loop MCP server."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings, project_root)
    logging.getLogger(__name__).info(
        "Launching software-loop MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "project_root": str(getattr(server, "project_root", "")),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
