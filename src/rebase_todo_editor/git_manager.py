"""
Git repository access used to enrich rebase plans.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
from git import Repo, InvalidGitRepositoryError, NoSuchPathError
from git.exc import BadName, GitCommandError

from .models import CommitInfo, GitRepositoryError


logger = logging.getLogger(__name__)

REBASE_STATE_DIRS = ("rebase-merge", "rebase-apply")


def repo_root_for_todo(todo_path: Path) -> Path:
    """Return the directory to start repository discovery from for a todo file.

    Git writes the todo list to ``<repo>/.git/rebase-merge/git-rebase-todo``,
    so the working tree is three levels above the file.
    """
    todo_path = Path(todo_path).resolve()
    parents = todo_path.parents
    if len(parents) > 2:
        return parents[2]
    return todo_path.parent


class GitManager:
    """Read-only Git operations for a single repository."""

    def __init__(self, repo_path: Optional[Path] = None) -> None:
        """Initialize Git manager with optional repository path."""
        self.repo_path = Path(repo_path or Path.cwd()).resolve()
        self._repo: Optional[Repo] = None

    @property
    def repo(self) -> Repo:
        """Get the Git repository instance."""
        if self._repo is None:
            self._repo = self._discover_repository()
        return self._repo

    def _discover_repository(self) -> Repo:
        """Discover the Git repository from the configured path or a parent."""
        search_path = self.repo_path

        logger.debug(f"Discovering repository in: {search_path}")
        while search_path != search_path.parent:
            try:
                repo = Repo(search_path)
                logger.info(f"Found Git repository at: {search_path}")
                return repo
            except (InvalidGitRepositoryError, NoSuchPathError):
                search_path = search_path.parent

        raise GitRepositoryError(
            f"No Git repository found at {self.repo_path} or any parent directory"
        )

    def get_commit(self, ref: str) -> Optional[CommitInfo]:
        """Look up a commit by hash or ref; returns None when it cannot be resolved."""
        try:
            commit = self.repo.commit(ref)
        except (BadName, ValueError, GitCommandError) as e:
            logger.debug(f"Could not resolve commit {ref}: {e}")
            return None

        return CommitInfo(
            hash=commit.hexsha,
            message=commit.message.strip(),
            author=commit.author.name,
            author_email=commit.author.email,
            date=commit.committed_datetime.isoformat(),
        )

    def get_current_branch(self) -> str:
        """Get the checked out branch name, or an empty string when detached."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            # HEAD is detached, which is the normal state during a rebase
            return ""

    def get_rebasing_branch(self) -> str:
        """Return the name of the branch being rebased.

        Reads ``head-name`` from the rebase state directory and falls back to
        the checked out branch when no rebase is in progress.
        """
        git_dir = Path(self.repo.git_dir)
        for state_dir in REBASE_STATE_DIRS:
            head_name = git_dir / state_dir / "head-name"
            if not head_name.is_file():
                continue
            name = head_name.read_text(encoding="utf-8", errors="replace").strip()
            if name.startswith("refs/heads/"):
                name = name[len("refs/heads/"):]
            if name and name != "detached HEAD":
                return name
        return self.get_current_branch()
