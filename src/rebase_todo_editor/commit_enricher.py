"""
Commit metadata lookup used to enrich rebase plan entries.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlencode

from .config import EditorConfig
from .git_manager import GitManager
from .models import CommitInfo, CommitSummary, GitRepositoryError


logger = logging.getLogger(__name__)

SHOW_COMMIT_DETAILS_COMMAND = "rebase-todo-editor.showCommitDetails"

_RELATIVE_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
)


class CommitEnricher(ABC):
    """Abstract source of commit metadata for rebase entries."""

    @abstractmethod
    async def resolve(self, repo_root: Optional[Path], ref: str) -> Optional[CommitSummary]:
        """
        Resolve a commit reference to its descriptive metadata.

        Args:
            repo_root: Directory to search for the repository from
            ref: Short or full commit hash taken from an entry line

        Returns:
            CommitSummary, or None if the ref cannot be resolved
        """
        pass

    @abstractmethod
    async def branch_name(self, repo_root: Optional[Path]) -> str:
        """
        Return the name of the branch being rebased.

        Args:
            repo_root: Directory to search for the repository from

        Returns:
            Branch name, or an empty string if unknown
        """
        pass


class NoOpEnricher(CommitEnricher):
    """Enricher that never resolves anything."""

    async def resolve(self, repo_root: Optional[Path], ref: str) -> Optional[CommitSummary]:
        return None

    async def branch_name(self, repo_root: Optional[Path]) -> str:
        return ""


def gravatar_url(email: str, style: str, size: int = 16) -> str:
    """Build the Gravatar avatar URL for an email address."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?{urlencode({'s': size, 'd': style})}"


def format_relative_date(when: datetime, now: Optional[datetime] = None) -> str:
    """Describe ``when`` relative to ``now``, e.g. ``3 days ago``."""
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    seconds = int((now - when).total_seconds())
    future = seconds < 0
    seconds = abs(seconds)

    if seconds < 60:
        return "just now"
    for unit, size in _RELATIVE_UNITS:
        if seconds >= size:
            count = seconds // size
            label = f"{count} {unit}{'s' if count != 1 else ''}"
            return f"in {label}" if future else f"{label} ago"
    return "just now"


class GitCommitEnricher(CommitEnricher):
    """Enricher backed by GitPython through ``GitManager``."""

    def __init__(self, config: Optional[EditorConfig] = None) -> None:
        self.config = config or EditorConfig()
        self._managers: Dict[Path, GitManager] = {}

    def _manager(self, repo_root: Optional[Path]) -> GitManager:
        key = Path(repo_root or Path.cwd()).resolve()
        manager = self._managers.get(key)
        if manager is None:
            manager = GitManager(key)
            self._managers[key] = manager
        return manager

    def summarize(self, info: CommitInfo, now: Optional[datetime] = None) -> CommitSummary:
        """Turn raw commit information into the summary shown for an entry."""
        committed = datetime.fromisoformat(info.date)
        return CommitSummary(
            ref=info.hash,
            author=info.author,
            email=info.author_email,
            commit_date=committed.strftime(self.config.date_format),
            relative_date=format_relative_date(committed, now),
            message_text=info.message,
            avatar_url=gravatar_url(info.author_email, self.config.gravatar_style),
            detail_command_token=f"command:{SHOW_COMMIT_DETAILS_COMMAND}",
        )

    def _lookup(self, repo_root: Optional[Path], ref: str) -> Optional[CommitSummary]:
        try:
            info = self._manager(repo_root).get_commit(ref)
        except GitRepositoryError as e:
            logger.warning(f"Cannot enrich {ref}: {e}")
            return None
        return self.summarize(info) if info else None

    def _branch(self, repo_root: Optional[Path]) -> str:
        try:
            return self._manager(repo_root).get_rebasing_branch()
        except GitRepositoryError as e:
            logger.warning(f"Cannot determine rebasing branch: {e}")
            return ""

    async def resolve(self, repo_root: Optional[Path], ref: str) -> Optional[CommitSummary]:
        return await asyncio.to_thread(self._lookup, repo_root, ref)

    async def branch_name(self, repo_root: Optional[Path]) -> str:
        return await asyncio.to_thread(self._branch, repo_root)
