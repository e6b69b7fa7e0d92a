"""
Message protocol spoken between the editor core and a presentation surface.

Every message is ``{"id": str, "method": str, "params": object}``. Inbound
messages are decoded into one command type per method; outbound state pushes
use ``rebase/didChange``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union

from .models import ProtocolError, RebaseAction, RebasePlanModel


MAX_SAFE_INTEGER = 2**53 - 1


class MessageKind(Enum):
    READY = "ready"
    START = "rebase/start"
    ABORT = "rebase/abort"
    CHANGE_ENTRY = "rebase/changeEntry"
    MOVE_ENTRY = "rebase/moveEntry"
    DID_CHANGE = "rebase/didChange"


@dataclass(frozen=True)
class IpcMessage:
    id: str
    method: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "method": self.method, "params": self.params}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IpcMessage:
        if not isinstance(data, Mapping):
            raise ProtocolError(f"Message must be an object, got {type(data).__name__}")
        method = data.get("method")
        if not isinstance(method, str):
            raise ProtocolError("Message is missing a method")
        params = data.get("params")
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise ProtocolError(f"{method}: params must be an object")
        return cls(id=str(data.get("id", "")), method=method, params=dict(params))


@dataclass(frozen=True)
class ReadyCommand:
    kind = MessageKind.READY


@dataclass(frozen=True)
class StartCommand:
    kind = MessageKind.START


@dataclass(frozen=True)
class AbortCommand:
    kind = MessageKind.ABORT


@dataclass(frozen=True)
class ChangeEntryCommand:
    ref: str
    action: RebaseAction
    kind = MessageKind.CHANGE_ENTRY


@dataclass(frozen=True)
class MoveEntryCommand:
    ref: str
    down: bool
    kind = MessageKind.MOVE_ENTRY


Command = Union[ReadyCommand, StartCommand, AbortCommand, ChangeEntryCommand, MoveEntryCommand]


def _require_ref(message: IpcMessage) -> str:
    ref = message.params.get("ref")
    if not isinstance(ref, str) or not ref:
        raise ProtocolError(f"{message.method}: params.ref must be a non-empty string")
    return ref


def _decode_change_entry(message: IpcMessage) -> ChangeEntryCommand:
    ref = _require_ref(message)
    name = message.params.get("action")
    action = RebaseAction.parse(name) if isinstance(name, str) else None
    if action is None:
        raise ProtocolError(f"{message.method}: unknown action {name!r}")
    return ChangeEntryCommand(ref=ref, action=action)


def _decode_move_entry(message: IpcMessage) -> MoveEntryCommand:
    ref = _require_ref(message)
    down = message.params.get("down", False)
    if not isinstance(down, bool):
        raise ProtocolError(f"{message.method}: params.down must be a boolean")
    return MoveEntryCommand(ref=ref, down=down)


_DECODERS = {
    MessageKind.READY: lambda message: ReadyCommand(),
    MessageKind.START: lambda message: StartCommand(),
    MessageKind.ABORT: lambda message: AbortCommand(),
    MessageKind.CHANGE_ENTRY: _decode_change_entry,
    MessageKind.MOVE_ENTRY: _decode_move_entry,
}


def decode_command(message: IpcMessage) -> Command:
    """Decode an inbound message into its command, raising ProtocolError if malformed."""
    try:
        kind = MessageKind(message.method)
    except ValueError:
        raise ProtocolError(f"Unknown method: {message.method}") from None
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise ProtocolError(f"{message.method} is not an inbound method")
    return decoder(message)


class IpcIdSequence:
    """Monotonic message id generator that wraps back to 1, never 0."""

    def __init__(self, prefix: str = "host", start: int = 0) -> None:
        self.prefix = prefix
        self._value = start

    def next_id(self) -> str:
        if self._value >= MAX_SAFE_INTEGER:
            self._value = 1
        else:
            self._value += 1
        return f"{self.prefix}:{self._value}"


# Shared by every channel in the process unless one is given its own sequence
default_id_sequence = IpcIdSequence()


def did_change_notification(model: RebasePlanModel, ids: IpcIdSequence) -> IpcMessage:
    return IpcMessage(id=ids.next_id(), method=MessageKind.DID_CHANGE.value, params=model.to_dict())
