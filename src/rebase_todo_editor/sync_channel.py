"""
Synchronization between an instruction file and a presentation surface.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from .commit_enricher import CommitEnricher
from .config import EditorConfig
from .edit_planner import EditPlan, plan_abort, plan_change_entry, plan_move_entry, plan_start
from .git_manager import repo_root_for_todo
from .models import ProtocolError, RebasePlanModel
from .plan_model import build_plan_model
from .plan_parser import parse_plan
from .presentation import PresentationSurface
from .protocol import (
    AbortCommand,
    ChangeEntryCommand,
    IpcIdSequence,
    IpcMessage,
    MessageKind,
    MoveEntryCommand,
    ReadyCommand,
    StartCommand,
    decode_command,
    default_id_sequence,
    did_change_notification,
)
from .text_document import TextChangeEvent, TextDocument


logger = logging.getLogger(__name__)


class SyncChannel:
    """Keeps one document and one presentation surface consistent.

    Text changes push a full plan snapshot to the surface; mutation messages
    from the surface are turned into text edits computed against a fresh
    parse of the current text.
    """

    def __init__(
        self,
        document: TextDocument,
        surface: PresentationSurface,
        enricher: CommitEnricher,
        config: Optional[EditorConfig] = None,
        ids: Optional[IpcIdSequence] = None,
        repo_root: Optional[Path] = None,
    ) -> None:
        self.document = document
        self.surface = surface
        self.enricher = enricher
        self.config = config or EditorConfig()
        self.ids = ids or default_id_sequence
        if repo_root is None and document.path is not None:
            repo_root = repo_root_for_todo(document.path)
        self.repo_root = repo_root
        self.closed = False
        self._dispose: Optional[Callable[[], None]] = None
        self._handlers: Dict[MessageKind, Callable[[Any], Awaitable[None]]] = {
            MessageKind.READY: self._on_ready,
            MessageKind.START: self._on_start,
            MessageKind.ABORT: self._on_abort,
            MessageKind.CHANGE_ENTRY: self._on_change_entry,
            MessageKind.MOVE_ENTRY: self._on_move_entry,
        }

    def attach(self) -> None:
        """Start listening for document changes."""
        if self._dispose is None:
            self._dispose = self.document.on_did_change(self.on_text_changed)

    def dispose(self) -> None:
        """Stop listening; later pushes are dropped."""
        if self._dispose is not None:
            self._dispose()
            self._dispose = None
        self.closed = True

    async def parse_state(self) -> RebasePlanModel:
        """Build a fresh model from the current document text."""
        return await build_plan_model(
            self.document.get_text(),
            self.enricher,
            self.repo_root,
            parallel=self.config.parallel_enrichment,
        )

    async def on_text_changed(self, event: TextChangeEvent) -> None:
        if not event.content_changes or event.document is not self.document:
            return
        await self.push_state()

    async def push_state(self) -> bool:
        """Parse, enrich and push a ``rebase/didChange`` snapshot."""
        state = await self.parse_state()
        return await self.post_message(did_change_notification(state, self.ids))

    async def post_message(self, message: IpcMessage) -> bool:
        """Best-effort delivery: failures are logged and reported as False."""
        if self.closed:
            logger.debug(f"Dropping {message.method} ({message.id}), channel closed")
            return False
        try:
            return await self.surface.post_message(message.to_dict())
        except Exception as e:
            logger.error(f"Failed to post {message.method} ({message.id}): {e}")
            return False

    async def on_message_received(self, raw: Mapping[str, Any]) -> None:
        """Decode an inbound message and dispatch it to its handler."""
        try:
            command = decode_command(IpcMessage.from_dict(raw))
        except ProtocolError as e:
            logger.warning(f"Ignoring malformed message: {e}")
            return
        logger.debug(f"Received {command.kind.value}")
        await self._handlers[command.kind](command)

    async def _on_ready(self, command: ReadyCommand) -> None:
        await self.push_state()

    async def _on_start(self, command: StartCommand) -> None:
        await self._run(plan_start())

    async def _on_abort(self, command: AbortCommand) -> None:
        await self._run(plan_abort(self.document.get_text()))

    # Mutations plan against a fresh parse of one text snapshot, never a pushed model
    async def _on_change_entry(self, command: ChangeEntryCommand) -> None:
        text = self.document.get_text()
        await self._run(plan_change_entry(parse_plan(text), text, command.ref, command.action))

    async def _on_move_entry(self, command: MoveEntryCommand) -> None:
        text = self.document.get_text()
        await self._run(plan_move_entry(parse_plan(text), text, command.ref, command.down))

    async def _run(self, plan: EditPlan) -> None:
        if plan.edits:
            await self.document.apply_edits(plan.edits)
        if plan.save:
            await self.document.save()
        if plan.close:
            await self.surface.close()
            self.dispose()
