"""
Tests for the synchronization channel.
"""

import pytest

from rebase_todo_editor.protocol import IpcIdSequence
from rebase_todo_editor.sync_channel import SyncChannel
from rebase_todo_editor.text_document import TextDocument

from conftest import SAMPLE_TODO, FailingSurface, FakeEnricher, RecordingSurface


def make_channel(document, surface, enricher=None, ids=None):
    channel = SyncChannel(document, surface, enricher or FakeEnricher(), ids=ids or IpcIdSequence())
    channel.attach()
    return channel


class TestStatePush:
    """Test outbound rebase/didChange pushes."""

    @pytest.mark.asyncio
    async def test_push_state_sends_full_snapshot(self, surface):
        """Test the snapshot pushed on request."""
        channel = make_channel(TextDocument(SAMPLE_TODO), surface)

        assert await channel.push_state() is True

        message = surface.messages[-1]
        assert message["id"] == "host:1"
        assert message["method"] == "rebase/didChange"
        assert message["params"]["branch"] == "feature/test"
        assert [e["ref"] for e in message["params"]["entries"]] == ["abc123", "def456"]
        assert len(message["params"]["commits"]) == 2

    @pytest.mark.asyncio
    async def test_external_text_change_pushes(self, surface):
        """Test that edits from other sources reach the surface."""
        document = TextDocument(SAMPLE_TODO)
        make_channel(document, surface)

        await document.replace_text("pick abc123 only one\n")

        assert len(surface.messages) == 1
        assert [e["ref"] for e in surface.messages[0]["params"]["entries"]] == ["abc123"]

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self):
        """Test that a torn-down surface does not raise."""
        channel = make_channel(TextDocument(SAMPLE_TODO), FailingSurface())

        assert await channel.push_state() is False

    @pytest.mark.asyncio
    async def test_disposed_channel_drops_pushes(self, surface):
        """Test that a closed channel neither listens nor sends."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)
        channel.dispose()

        await document.replace_text("")
        assert await channel.push_state() is False
        assert surface.messages == []

    @pytest.mark.asyncio
    async def test_id_sequence_is_shared_between_channels(self):
        """Test that ids keep increasing across channels using one sequence."""
        ids = IpcIdSequence()
        first, second = RecordingSurface(), RecordingSurface()
        a = make_channel(TextDocument(SAMPLE_TODO), first, ids=ids)
        b = make_channel(TextDocument(SAMPLE_TODO), second, ids=ids)

        await a.push_state()
        await b.push_state()
        await a.push_state()

        assert [m["id"] for m in first.messages] == ["host:1", "host:3"]
        assert [m["id"] for m in second.messages] == ["host:2"]


class TestInboundMessages:
    """Test mutation requests from the surface."""

    @pytest.mark.asyncio
    async def test_ready_resyncs(self, surface):
        """Test that ready pushes the current state."""
        channel = make_channel(TextDocument(SAMPLE_TODO), surface)

        await channel.on_message_received({"id": "webview:1", "method": "ready"})

        assert surface.messages[-1]["method"] == "rebase/didChange"

    @pytest.mark.asyncio
    async def test_change_entry_edits_text_and_pushes(self, surface):
        """Test that changeEntry rewrites the line and the new state is pushed."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)

        await channel.on_message_received({
            "id": "webview:1",
            "method": "rebase/changeEntry",
            "params": {"ref": "abc123", "action": "reword"},
        })

        assert document.get_text().split("\n")[1] == "reword abc123 first commit"
        assert surface.messages[-1]["params"]["entries"][0]["action"] == "reword"

    @pytest.mark.asyncio
    async def test_move_entry(self, surface):
        """Test that moveEntry reorders the plan."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)

        await channel.on_message_received({
            "id": "webview:2",
            "method": "rebase/moveEntry",
            "params": {"ref": "def456", "down": False},
        })

        refs = [e["ref"] for e in surface.messages[-1]["params"]["entries"]]
        assert refs == ["def456", "abc123"]

    @pytest.mark.asyncio
    async def test_boundary_move_is_ignored(self, surface):
        """Test that moving the last entry down changes nothing."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)

        await channel.on_message_received({
            "id": "webview:3",
            "method": "rebase/moveEntry",
            "params": {"ref": "def456", "down": True},
        })

        assert document.get_text() == SAMPLE_TODO
        assert document.version == 0
        assert surface.messages == []

    @pytest.mark.asyncio
    async def test_stale_ref_is_ignored(self, surface):
        """Test that a ref missing from the current text is a no-op."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)

        await channel.on_message_received({
            "id": "webview:4",
            "method": "rebase/changeEntry",
            "params": {"ref": "fedcba", "action": "drop"},
        })

        assert document.get_text() == SAMPLE_TODO

    @pytest.mark.asyncio
    async def test_malformed_message_is_ignored(self, surface):
        """Test that protocol errors do not escape the channel."""
        document = TextDocument(SAMPLE_TODO)
        channel = make_channel(document, surface)

        await channel.on_message_received({"id": "x", "method": "rebase/explode"})
        await channel.on_message_received({"id": "y", "method": "rebase/changeEntry", "params": {"ref": "abc123"}})

        assert document.get_text() == SAMPLE_TODO
        assert surface.messages == []

    @pytest.mark.asyncio
    async def test_abort_empties_saves_and_closes(self, todo_file, surface):
        """Test that abort leaves an empty saved file and closes the surface."""
        document = TextDocument.open(todo_file)
        channel = make_channel(document, surface)

        await channel.on_message_received({"id": "webview:5", "method": "rebase/abort"})

        assert document.get_text() == ""
        assert todo_file.read_text(encoding="utf-8") == ""
        assert surface.closed is True
        assert channel.closed is True
        assert surface.messages[-1]["params"]["entries"] == []

    @pytest.mark.asyncio
    async def test_start_saves_current_text_and_closes(self, todo_file, surface):
        """Test that start persists pending edits without further changes."""
        document = TextDocument.open(todo_file)
        channel = make_channel(document, surface)

        await channel.on_message_received({
            "id": "webview:6",
            "method": "rebase/changeEntry",
            "params": {"ref": "def456", "action": "fixup"},
        })
        pushes = len(surface.messages)
        await channel.on_message_received({"id": "webview:7", "method": "rebase/start"})

        assert "fixup def456 second commit" in todo_file.read_text(encoding="utf-8")
        assert surface.closed is True
        assert len(surface.messages) == pushes
