"""
Parsing of interactive rebase instruction files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from .models import PlanHeader, RebaseAction, RebaseEntry, RebasePlan


logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(
    r"^\s?#\s?Rebase\s([0-9a-f]+)\.\.([0-9a-f]+)\sonto\s([0-9a-f]+)(?:\s.*)?$",
    re.IGNORECASE,
)
ENTRY_PATTERN = re.compile(r"^\s?([A-Za-z]+)\s([0-9a-f]+)(?:\s(.*))?$")
# git todo commands whose arguments are labels, refs or shell text, never a commit
NON_ENTRY_COMMANDS = frozenset({"x", "exec", "l", "label", "t", "reset", "m", "merge", "u", "update-ref"})


class LineKind(Enum):
    """Classification of a single instruction file line."""

    HEADER = "header"
    ENTRY = "entry"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedLine:
    """A line of the instruction file tagged with its kind."""

    kind: LineKind
    offset: int
    match: Optional[re.Match] = None


def iter_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(offset, line)`` pairs without line terminators."""
    offset = 0
    for raw in text.split("\n"):
        yield offset, raw.rstrip("\r")
        offset += len(raw) + 1


def classify_line(line: str, offset: int) -> ClassifiedLine:
    """Classify one line as a header directive, an action entry or anything else."""
    match = HEADER_PATTERN.match(line)
    if match:
        return ClassifiedLine(LineKind.HEADER, offset, match)
    match = ENTRY_PATTERN.match(line)
    if match and match.group(1).lower() not in NON_ENTRY_COMMANDS:
        return ClassifiedLine(LineKind.ENTRY, offset, match)
    return ClassifiedLine(LineKind.OTHER, offset)


def parse_plan(text: str) -> RebasePlan:
    """Parse instruction file text into a plan.

    Never raises: a missing header yields empty header fields and text without
    action lines yields an empty entry list.
    """
    header: Optional[PlanHeader] = None
    entries: List[RebaseEntry] = []

    for offset, line in iter_lines(text):
        classified = classify_line(line, offset)
        if classified.kind is LineKind.HEADER:
            if header is None:
                from_ref, to_ref, onto_ref = classified.match.groups()
                header = PlanHeader(from_ref=from_ref, to_ref=to_ref, onto_ref=onto_ref)
        elif classified.kind is LineKind.ENTRY:
            token, ref, message = classified.match.groups()
            entries.append(
                RebaseEntry(
                    text_offset=classified.offset,
                    action=RebaseAction.from_token(token),
                    ref=ref,
                    message=message or "",
                )
            )

    logger.debug(f"Parsed rebase plan: header={'found' if header else 'missing'} entries={len(entries)}")
    return RebasePlan(header=header or PlanHeader(), entries=entries)
