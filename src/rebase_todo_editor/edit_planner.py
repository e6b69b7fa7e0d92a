"""
Planning of minimal text edits for rebase plan mutations.

Every function here is pure: it takes the plan parsed from ``text`` and
returns the edits that realize one mutation. Offsets of entries after the
edited line are not patched; the next full parse recomputes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from .models import RebaseAction, RebasePlan
from .text_document import LineIndex, TextEdit


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditPlan:
    """Edits to apply atomically plus host side effects to run afterwards."""

    edits: List[TextEdit] = field(default_factory=list)
    save: bool = False
    close: bool = False

    @property
    def is_noop(self) -> bool:
        return not self.edits and not self.save and not self.close


NO_EDIT = EditPlan()


def _line_terminator(lines: LineIndex, line: int) -> str:
    """Terminator of ``line``, or of the line above when it is the unterminated last line."""
    for candidate in (line, line - 1):
        if candidate >= 0:
            terminator = lines.text[lines.line_end(candidate):lines.line_start(candidate + 1)]
            if terminator:
                return terminator
    return "\n"


def plan_change_entry(plan: RebasePlan, text: str, ref: str, action: RebaseAction) -> EditPlan:
    """Rewrite the line of the first entry referencing ``ref`` with ``action``."""
    entry = plan.find_entry(ref)
    if entry is None:
        logger.debug(f"changeEntry ignored, ref {ref} not in plan")
        return NO_EDIT

    lines = LineIndex(text)
    line = lines.position_at(entry.text_offset).line
    edit = TextEdit(lines.line_start(line), lines.line_end(line), entry.to_line(action))
    logger.debug(f"changeEntry {ref}: line {line} -> {action.value}")
    return EditPlan(edits=[edit])


def plan_move_entry(plan: RebasePlan, text: str, ref: str, down: bool) -> EditPlan:
    """Move the line of the first entry referencing ``ref`` one line up or down.

    The entry line is deleted and re-inserted at the start of the original
    line two below (down) or one above (up), both measured in the text before
    the deletion.
    """
    entry = plan.find_entry(ref)
    if entry is None:
        logger.debug(f"moveEntry ignored, ref {ref} not in plan")
        return NO_EDIT

    index = plan.index_of(ref)
    if (not down and index == 0) or (down and index == len(plan.entries) - 1):
        logger.debug(f"moveEntry ignored, {ref} already at boundary (index {index})")
        return NO_EDIT

    lines = LineIndex(text)
    line = lines.position_at(entry.text_offset).line
    delete = TextEdit.delete(lines.line_start(line), lines.line_start(line + 1))

    target = lines.line_start(line + 2 if down else line - 1)
    moved = entry.to_line()
    terminator = _line_terminator(lines, line)
    if target == len(text) and text and not text.endswith("\n"):
        # Last line has no terminator, so the moved line must bring its own
        inserted = f"{terminator}{moved}"
    else:
        inserted = f"{moved}{terminator}"

    logger.debug(f"moveEntry {ref}: line {line} {'down' if down else 'up'}")
    return EditPlan(edits=[delete, TextEdit.insert(target, inserted)])


def plan_abort(text: str) -> EditPlan:
    """Empty the document, which tells git to abort the rebase, then save and close."""
    return EditPlan(edits=[TextEdit(0, len(text), "")], save=True, close=True)


def plan_start() -> EditPlan:
    """Accept the file as written: save and close without editing."""
    return EditPlan(save=True, close=True)
