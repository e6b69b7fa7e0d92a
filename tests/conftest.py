"""
Shared test doubles.
"""

import pytest

from rebase_todo_editor.commit_enricher import CommitEnricher
from rebase_todo_editor.models import CommitSummary
from rebase_todo_editor.presentation import PresentationSurface


SAMPLE_TODO = (
    "# Rebase abc123..def456 onto 789abc onto\n"
    "pick abc123 first commit\n"
    "squash def456 second commit\n"
)


def make_summary(ref):
    return CommitSummary(
        ref=ref,
        author="Test Author",
        email="test@example.com",
        commit_date="2023-01-01",
        relative_date="3 days ago",
        message_text=f"message of {ref}",
        avatar_url="https://www.gravatar.com/avatar/x",
        detail_command_token="command:rebase-todo-editor.showCommitDetails",
    )


class FakeEnricher(CommitEnricher):
    """Resolves the refs it knows about and records every lookup."""

    def __init__(self, known=("abc123", "def456"), branch="feature/test"):
        self.known = set(known)
        self.branch = branch
        self.calls = []

    async def resolve(self, repo_root, ref):
        self.calls.append(ref)
        return make_summary(ref) if ref in self.known else None

    async def branch_name(self, repo_root):
        return self.branch


class RecordingSurface(PresentationSurface):
    """Keeps every message it is sent."""

    def __init__(self):
        self.messages = []
        self.closed = False

    async def post_message(self, message):
        self.messages.append(message)
        return True

    async def close(self):
        self.closed = True


class FailingSurface(RecordingSurface):
    """Surface that has been torn down and raises on delivery."""

    async def post_message(self, message):
        raise RuntimeError("webview is disposed")


@pytest.fixture
def enricher():
    return FakeEnricher()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def todo_file(tmp_path):
    path = tmp_path / ".git" / "rebase-merge" / "git-rebase-todo"
    path.parent.mkdir(parents=True)
    path.write_text(SAMPLE_TODO, encoding="utf-8")
    return path
