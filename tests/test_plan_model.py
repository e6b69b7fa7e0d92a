"""
Tests for building the enriched plan model.
"""

import asyncio

import pytest

from rebase_todo_editor.models import RebaseAction
from rebase_todo_editor.plan_model import build_plan_model

from conftest import SAMPLE_TODO, FakeEnricher, make_summary


class SlowFirstEnricher(FakeEnricher):
    """Resolves earlier refs more slowly than later ones."""

    async def resolve(self, repo_root, ref):
        await asyncio.sleep(0.02 if ref == "abc123" else 0)
        return await super().resolve(repo_root, ref)


class TestBuildPlanModel:
    """Test build_plan_model."""

    @pytest.mark.asyncio
    async def test_enriches_entries_in_order(self, enricher):
        """Test header, entries and commits of a fully resolved plan."""
        model = await build_plan_model(SAMPLE_TODO, enricher)

        assert model.header.branch_name == "feature/test"
        assert model.header.from_ref == "abc123"
        assert [e.action for e in model.entries] == [RebaseAction.PICK, RebaseAction.SQUASH]
        assert [c.ref for c in model.commits] == ["abc123", "def456"]
        assert enricher.calls == ["abc123", "def456"]

    @pytest.mark.asyncio
    async def test_unresolved_refs_are_omitted(self):
        """Test that commits has no placeholder for a failed resolution."""
        text = "pick a1 one\npick abc123 two\npick b2 three\n"
        model = await build_plan_model(text, FakeEnricher(known=("abc123",)))

        assert len(model.entries) == 3
        assert model.commits == [make_summary("abc123")]

    @pytest.mark.asyncio
    async def test_parallel_keeps_entry_order(self):
        """Test concurrent resolution still reports commits in entry order."""
        model = await build_plan_model(SAMPLE_TODO, SlowFirstEnricher(), parallel=True)

        assert [c.ref for c in model.commits] == ["abc123", "def456"]

    @pytest.mark.asyncio
    async def test_empty_text(self, enricher):
        """Test that an empty file gives an empty model."""
        model = await build_plan_model("", enricher)

        assert model.entries == []
        assert model.commits == []
        assert model.header.from_ref == ""
        assert model.header.branch_name == "feature/test"
