"""
HTML bootstrap for browser-based presentation surfaces.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional

from .config import EditorConfig
from .models import RebasePlanModel, TemplateError


logger = logging.getLogger(__name__)

ROOT_TOKEN = re.compile(r"#\{root\}")
END_OF_BODY_TOKEN = re.compile(r"#\{endOfBody\}", re.IGNORECASE)
BOOTSTRAP_NONCE = "cmViYXNlLXRvZG8tYm9vdHN0cmFw"


def bootstrap_script(model: RebasePlanModel) -> str:
    """Script tag that hands the initial plan snapshot to the page."""
    payload = json.dumps(model.to_dict())
    # Keep "</script>" inside commit messages from closing the tag
    payload = payload.replace("</", "<\\/")
    return (
        f'<script type="text/javascript" nonce="{BOOTSTRAP_NONCE}">'
        f"window.bootstrap = {payload};</script>"
    )


class WebviewRenderer:
    """Renders the plan page from a markup template."""

    def __init__(self, template_path: Path, root_uri: str, config: Optional[EditorConfig] = None) -> None:
        self.template_path = Path(template_path)
        self.root_uri = root_uri
        self.config = config or EditorConfig()
        self._html: Optional[str] = None

    def _read_template(self) -> str:
        try:
            return self.template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise TemplateError(f"Cannot read webview template {self.template_path}: {e}") from e

    def render(self, model: RebasePlanModel) -> str:
        """Substitute the root token and inject the bootstrap snapshot.

        The first rendering is cached, so later calls return the same markup
        unless debug mode re-reads the template each time.
        """
        if not self.config.debug and self._html is not None:
            return self._html

        content = self._read_template()
        html = ROOT_TOKEN.sub(lambda _: self.root_uri, content)
        html = END_OF_BODY_TOKEN.sub(lambda _: bootstrap_script(model), html, count=1)
        logger.debug(f"Rendered webview from {self.template_path} ({len(model.entries)} entries)")

        self._html = html
        return html
