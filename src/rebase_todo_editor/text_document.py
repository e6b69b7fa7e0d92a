"""
In-memory text store backing an instruction file.

Offsets are character offsets into the document text; positions are
``(line, character)`` pairs with lines separated by ``\\n``.
"""

from __future__ import annotations

import asyncio
import logging
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class TextEdit:
    """Replace ``[start, end)`` of the pre-edit text with ``text``."""

    start: int
    end: int
    text: str = ""

    @classmethod
    def insert(cls, offset: int, text: str) -> TextEdit:
        return cls(offset, offset, text)

    @classmethod
    def delete(cls, start: int, end: int) -> TextEdit:
        return cls(start, end, "")


class LineIndex:
    """Line start table for a snapshot of text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self._starts = [0]
        self._starts.extend(i + 1 for i, ch in enumerate(text) if ch == "\n")

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_start(self, line: int) -> int:
        """Offset of the first character of ``line``, clamped to the document."""
        if line < 0:
            return 0
        if line >= self.line_count:
            return len(self.text)
        return self._starts[line]

    def line_end(self, line: int) -> int:
        """Offset just before the terminator of ``line``."""
        if line < 0:
            return 0
        if line >= self.line_count:
            return len(self.text)
        if line + 1 < self.line_count:
            end = self._starts[line + 1] - 1
            if end > self._starts[line] and self.text[end - 1] == "\r":
                end -= 1
            return end
        return len(self.text)

    def position_at(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._starts, offset) - 1
        return Position(line, offset - self._starts[line])

    def offset_at(self, position: Position) -> int:
        """Offset of ``position`` after clamping it to the document."""
        if position.line < 0:
            return 0
        if position.line >= self.line_count:
            return len(self.text)
        start = self._starts[position.line]
        return start + max(0, min(position.character, self.line_end(position.line) - start))


TextChangeListener = Callable[["TextChangeEvent"], Awaitable[None]]


@dataclass(frozen=True)
class TextChangeEvent:
    """Notification that a document's text changed."""

    document: TextDocument
    content_changes: Tuple[TextEdit, ...]


class TextDocument:
    """Text store with atomic multi-edit application and change listeners."""

    def __init__(self, text: str = "", path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._text = text
        self._index = LineIndex(text)
        self.version = 0
        self.dirty = False
        self._listeners: List[TextChangeListener] = []

    @classmethod
    def open(cls, path: Path) -> TextDocument:
        """Load a document from disk, keeping line terminators untouched."""
        path = Path(path)
        with open(path, "r", encoding="utf-8", newline="") as fh:
            text = fh.read()
        logger.debug(f"Opened document {path} ({len(text)} chars)")
        return cls(text, path)

    def get_text(self) -> str:
        return self._text

    @property
    def line_count(self) -> int:
        return self._index.line_count

    def position_at(self, offset: int) -> Position:
        return self._index.position_at(offset)

    def offset_at(self, position: Position) -> int:
        return self._index.offset_at(position)

    def on_did_change(self, listener: TextChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    async def apply_edits(self, edits: Sequence[TextEdit]) -> bool:
        """Apply ``edits`` atomically against the current text.

        All edits refer to offsets in the text as it is before any of them is
        applied. Overlapping edits are rejected with ``ValueError``.
        """
        if not edits:
            return False

        length = len(self._text)
        ordered = sorted(enumerate(edits), key=lambda item: (item[1].start, item[0]))
        previous_end = 0
        for _, edit in ordered:
            if edit.start < 0 or edit.end > length or edit.start > edit.end:
                raise ValueError(f"Edit out of range: {edit} (length {length})")
            if edit.start < previous_end:
                raise ValueError(f"Overlapping edits: {edit}")
            previous_end = edit.end

        text = self._text
        for _, edit in reversed(ordered):
            text = text[: edit.start] + edit.text + text[edit.end :]

        self._set_text(text)
        await self._notify(tuple(edits))
        return True

    async def replace_text(self, text: str) -> None:
        """Replace the whole text, e.g. after the file changed on disk."""
        if text == self._text:
            return
        change = TextEdit(0, len(self._text), text)
        self._set_text(text)
        await self._notify((change,))

    async def save(self) -> None:
        """Persist the text to ``path`` (if any) and clear the dirty flag."""
        if self.path is not None:
            await asyncio.to_thread(self._write, self.path, self._text)
            logger.info(f"Saved {self.path} at version {self.version}")
        self.dirty = False

    @staticmethod
    def _write(path: Path, text: str) -> None:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)

    def _set_text(self, text: str) -> None:
        self._text = text
        self._index = LineIndex(text)
        self.version += 1
        self.dirty = True

    async def _notify(self, changes: Tuple[TextEdit, ...]) -> None:
        event = TextChangeEvent(document=self, content_changes=changes)
        for listener in list(self._listeners):
            await listener(event)
