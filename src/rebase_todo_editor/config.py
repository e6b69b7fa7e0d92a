"""
Runtime configuration for the rebase todo editor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


ENV_PREFIX = "REBASE_TODO_EDITOR_"

DEFAULT_DATE_FORMAT = "%B %d, %Y %I:%M %p"
DEFAULT_GRAVATAR_STYLE = "robohash"


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class EditorConfig:
    """Settings shared by the enricher, the webview renderer and the CLI."""

    date_format: str = DEFAULT_DATE_FORMAT
    gravatar_style: str = DEFAULT_GRAVATAR_STYLE
    debug: bool = False
    parallel_enrichment: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> EditorConfig:
        """Build a config from ``REBASE_TODO_EDITOR_*`` environment variables."""
        env = os.environ if env is None else env
        return cls(
            date_format=env.get(f"{ENV_PREFIX}DATE_FORMAT", DEFAULT_DATE_FORMAT),
            gravatar_style=env.get(f"{ENV_PREFIX}GRAVATAR_STYLE", DEFAULT_GRAVATAR_STYLE),
            debug=_env_flag(env, "DEBUG", False),
            parallel_enrichment=_env_flag(env, "PARALLEL", False),
        )


def default_log_path() -> Path:
    """Determine default log file path (~/.rebase-todo-editor/rebase-todo-editor.log)."""
    env_path = os.environ.get(f"{ENV_PREFIX}LOG")
    if env_path:
        p = Path(env_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    base = Path.home() / ".rebase-todo-editor"
    base.mkdir(parents=True, exist_ok=True)
    return base / "rebase-todo-editor.log"
