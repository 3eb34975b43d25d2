"""Rendering, templates and append-only Journal writes."""

from .render import (
    checkpoint_block,
    dumps,
    handoff_block,
    render_checkpoint,
    render_handoff,
    render_status,
    status_payload,
    wrap_error,
    wrap_output,
)
from .templates import ScaffoldParams, render_scaffold
from .writer import ScaffoldError, append_block, write_scaffold

__all__ = [
    "ScaffoldError",
    "ScaffoldParams",
    "append_block",
    "checkpoint_block",
    "dumps",
    "handoff_block",
    "render_checkpoint",
    "render_handoff",
    "render_scaffold",
    "render_status",
    "status_payload",
    "wrap_error",
    "wrap_output",
    "write_scaffold",
]
