"""
Rebase Todo Editor - a live, structured view of an interactive rebase plan.

This package keeps a git-rebase-todo instruction file and a presentation
surface in sync: the file is parsed into an enriched plan model, and
reorder/action changes from the surface are applied back as minimal text edits.
"""

__version__ = "0.1.0"

from .models import (
    CommitSummary,
    PlanHeader,
    RebaseAction,
    RebaseEntry,
    RebasePlan,
    RebasePlanModel,
    RebaseTodoError,
)
from .plan_parser import parse_plan
from .plan_model import build_plan_model
from .commit_enricher import CommitEnricher, GitCommitEnricher, NoOpEnricher
from .edit_planner import EditPlan, plan_abort, plan_change_entry, plan_move_entry, plan_start
from .text_document import TextDocument, TextEdit
from .presentation import PresentationSurface
from .sync_channel import SyncChannel

__all__ = [
    "CommitSummary",
    "PlanHeader",
    "RebaseAction",
    "RebaseEntry",
    "RebasePlan",
    "RebasePlanModel",
    "RebaseTodoError",
    "parse_plan",
    "build_plan_model",
    "CommitEnricher",
    "GitCommitEnricher",
    "NoOpEnricher",
    "EditPlan",
    "plan_abort",
    "plan_change_entry",
    "plan_move_entry",
    "plan_start",
    "TextDocument",
    "TextEdit",
    "PresentationSurface",
    "SyncChannel",
]
