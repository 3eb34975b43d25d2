"""Environment helpers for git and build subprocesses."""

from __future__ import annotations

import os
from typing import Mapping

_SANITIZED_VARS = {
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
    "PYTHONHOME",
    "PYTHONPATH",
}

_FIXED_VARS = {
    "GIT_TERMINAL_PROMPT": "0",
    "LC_ALL": "C",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return an environment that keeps git non-interactive and bound to the working directory."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    env.update(_FIXED_VARS)
    if additional:
        env.update(additional)
    return env
