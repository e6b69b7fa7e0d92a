"""
Data models for the rebase todo editor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RebaseAction(Enum):
    """Actions understood in a rebase instruction file."""

    PICK = "pick"
    REWORD = "reword"
    EDIT = "edit"
    SQUASH = "squash"
    FIXUP = "fixup"
    BREAK = "break"
    DROP = "drop"

    @classmethod
    def from_token(cls, token: str) -> RebaseAction:
        """Map a full action word or its single-letter alias to an action.

        Unrecognized tokens map to ``PICK``.
        """
        return _ACTION_ALIASES.get(token, cls.PICK)

    @classmethod
    def parse(cls, name: str) -> Optional[RebaseAction]:
        """Strict variant of ``from_token``: unknown names return None."""
        return _ACTION_ALIASES.get(name.strip().lower())


_ACTION_ALIASES: Dict[str, RebaseAction] = {
    "p": RebaseAction.PICK,
    "pick": RebaseAction.PICK,
    "r": RebaseAction.REWORD,
    "reword": RebaseAction.REWORD,
    "e": RebaseAction.EDIT,
    "edit": RebaseAction.EDIT,
    "s": RebaseAction.SQUASH,
    "squash": RebaseAction.SQUASH,
    "f": RebaseAction.FIXUP,
    "fixup": RebaseAction.FIXUP,
    "b": RebaseAction.BREAK,
    "break": RebaseAction.BREAK,
    "d": RebaseAction.DROP,
    "drop": RebaseAction.DROP,
}


@dataclass(frozen=True)
class PlanHeader:
    """Range and destination of the rebase, taken from the header directive."""

    branch_name: str = ""
    from_ref: str = ""
    to_ref: str = ""
    onto_ref: str = ""


@dataclass(frozen=True)
class RebaseEntry:
    """One action line of the instruction file."""

    text_offset: int
    action: RebaseAction
    ref: str
    message: str = ""

    def to_line(self, action: Optional[RebaseAction] = None) -> str:
        """Render the entry as an instruction line (without line terminator)."""
        return f"{(action or self.action).value} {self.ref} {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.text_offset,
            "action": self.action.value,
            "ref": self.ref,
            "message": self.message,
        }


@dataclass
class CommitInfo:
    """Information about a Git commit."""

    hash: str
    message: str
    author: str
    author_email: str
    date: str


@dataclass(frozen=True)
class CommitSummary:
    """Descriptive commit metadata shown next to an entry."""

    ref: str
    author: str
    email: str
    commit_date: str
    relative_date: str
    message_text: str
    avatar_url: str
    detail_command_token: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ref": self.ref,
            "author": self.author,
            "email": self.email,
            "date": self.commit_date,
            "dateFromNow": self.relative_date,
            "message": self.message_text,
            "avatarUrl": self.avatar_url,
            "command": self.detail_command_token,
        }


@dataclass(frozen=True)
class RebasePlan:
    """Parsed instruction file prior to enrichment."""

    header: PlanHeader = field(default_factory=PlanHeader)
    entries: List[RebaseEntry] = field(default_factory=list)

    def find_entry(self, ref: str) -> Optional[RebaseEntry]:
        """Return the first entry referencing ``ref``."""
        for entry in self.entries:
            if entry.ref == ref:
                return entry
        return None

    def index_of(self, ref: str) -> int:
        """Return the index of the first entry referencing ``ref``, or -1."""
        for index, entry in enumerate(self.entries):
            if entry.ref == ref:
                return index
        return -1


@dataclass(frozen=True)
class RebasePlanModel(RebasePlan):
    """Enriched plan pushed to the presentation surface.

    ``commits`` only holds the summaries that resolved, in entry order; it is
    not positionally aligned with ``entries``.
    """

    commits: List[CommitSummary] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire form of the model."""
        return {
            "branch": self.header.branch_name,
            "from": self.header.from_ref,
            "to": self.header.to_ref,
            "onto": self.header.onto_ref,
            "entries": [entry.to_dict() for entry in self.entries],
            "commits": [commit.to_dict() for commit in self.commits],
        }


class RebaseTodoError(Exception):
    """Base exception for rebase todo editor operations."""

    pass


class GitRepositoryError(RebaseTodoError):
    """Exception raised for Git repository related errors."""

    pass


class ProtocolError(RebaseTodoError):
    """Exception raised for malformed protocol messages."""

    pass


class TemplateError(RebaseTodoError):
    """Exception raised when the webview template cannot be loaded."""

    pass
