"""
Console implementation of the presentation surface using rich.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .presentation import PresentationSurface
from .protocol import MessageKind


logger = logging.getLogger(__name__)

ACTION_STYLES = {
    "pick": "green",
    "reword": "cyan",
    "edit": "magenta",
    "squash": "yellow",
    "fixup": "yellow",
    "break": "blue",
    "drop": "red",
}


def build_plan_table(state: Dict[str, Any]) -> Table:
    """Render a ``rebase/didChange`` payload as a table.

    Commit details are looked up by ref prefix since ``commits`` only holds
    the entries that resolved.
    """
    commits = state.get("commits", [])

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Action")
    table.add_column("Ref", style="cyan")
    table.add_column("Message")
    table.add_column("Author", style="green")
    table.add_column("Date", style="dim")

    for order, entry in enumerate(state.get("entries", []), 1):
        ref = entry.get("ref", "")
        commit = next((c for c in commits if c.get("ref", "").startswith(ref)), None)
        action = entry.get("action", "pick")
        style = ACTION_STYLES.get(action, "white")
        table.add_row(
            str(order),
            Text(action, style=style),
            Text(ref),
            Text(entry.get("message", "")),
            Text(commit.get("author", "")) if commit else "",
            commit.get("dateFromNow", "") if commit else "",
        )
    return table


def build_header_panel(state: Dict[str, Any]) -> Panel:
    branch = state.get("branch") or "(unknown branch)"
    if state.get("from"):
        summary = f"{state['from']}..{state['to']} onto {state['onto']}"
    else:
        summary = "no rebase header found"
    return Panel(Text.assemble((branch, "bold"), f"  {summary}"), title="Interactive Rebase", expand=False)


class ConsoleSurface(PresentationSurface):
    """Prints every pushed plan snapshot to a rich console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.state: Optional[Dict[str, Any]] = None
        self.closed = False

    async def post_message(self, message: Dict[str, Any]) -> bool:
        if self.closed:
            logger.debug(f"Dropping {message.get('method')} for closed console surface")
            return False
        if message.get("method") != MessageKind.DID_CHANGE.value:
            logger.debug(f"Console surface ignoring {message.get('method')}")
            return True
        self.state = message.get("params", {})
        self.render()
        return True

    def render(self) -> None:
        if self.state is None:
            return
        self.console.print(build_header_panel(self.state))
        self.console.print(build_plan_table(self.state))

    async def close(self) -> None:
        self.closed = True
