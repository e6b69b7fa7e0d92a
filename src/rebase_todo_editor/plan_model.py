"""
Construction of the enriched rebase plan model.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .commit_enricher import CommitEnricher
from .models import CommitSummary, RebasePlanModel
from .plan_parser import parse_plan


logger = logging.getLogger(__name__)


async def build_plan_model(
    text: str,
    enricher: CommitEnricher,
    repo_root: Optional[Path] = None,
    parallel: bool = False,
) -> RebasePlanModel:
    """Parse ``text`` and enrich every entry with its commit metadata.

    Resolutions run one entry at a time in entry order unless ``parallel`` is
    set; either way ``commits`` follows entry order and leaves out refs that
    did not resolve.
    """
    plan = parse_plan(text)
    branch = await enricher.branch_name(repo_root)

    if parallel:
        results = await asyncio.gather(
            *(enricher.resolve(repo_root, entry.ref) for entry in plan.entries)
        )
    else:
        results = []
        for entry in plan.entries:
            results.append(await enricher.resolve(repo_root, entry.ref))

    commits: List[CommitSummary] = [commit for commit in results if commit is not None]
    if len(commits) < len(plan.entries):
        logger.debug(f"Resolved {len(commits)} of {len(plan.entries)} entries")

    return RebasePlanModel(
        header=replace(plan.header, branch_name=branch),
        entries=plan.entries,
        commits=commits,
    )
