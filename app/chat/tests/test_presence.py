"""
Tests for PresenceRegistry and PresenceLifespan.

Related files:
    - presence.py: Implementation under test
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from chat.presence import PresenceLifespan, PresenceRegistry


class TestPresenceRegistry:
    """
    Tests for the in-process presence registry.

    Why it matters: a message is pushed live only if its recipient's entry
    here points at their current connection.
    """

    def test_register_then_lookup(self, presence):
        presence.register("u1", "chan-1")

        assert presence.lookup("u1") == "chan-1"
        assert "u1" in presence
        assert len(presence) == 1

    def test_lookup_unknown_user_is_none(self, presence):
        assert presence.lookup("nobody") is None
        assert "nobody" not in presence

    def test_uuid_and_string_keys_are_the_same_entry(self, presence):
        user_id = uuid.uuid4()
        presence.register(user_id, "chan-1")

        assert presence.lookup(str(user_id)) == "chan-1"

    def test_last_register_wins(self, presence):
        """A second connection replaces the first as delivery target."""
        assert presence.register("u1", "chan-1") is None
        assert presence.register("u1", "chan-2") == "chan-1"

        assert presence.lookup("u1") == "chan-2"
        assert len(presence) == 1

    def test_unregister_removes_entry(self, presence):
        presence.register("u1", "chan-1")

        assert presence.unregister("u1") is True
        assert presence.lookup("u1") is None

    def test_unregister_stale_handle_keeps_newer_connection(self, presence):
        """An older tab closing does not take the newer tab offline."""
        presence.register("u1", "chan-old")
        presence.register("u1", "chan-new")

        assert presence.unregister("u1", "chan-old") is False
        assert presence.lookup("u1") == "chan-new"

    def test_unregister_unknown_user_is_noop(self, presence):
        assert presence.unregister("nobody", "chan-x") is False

    def test_clear_drops_everything(self, presence):
        presence.register("u1", "chan-1")
        presence.register("u2", "chan-2")

        presence.clear()

        assert len(presence) == 0
        assert presence.handles() == []


@pytest.mark.asyncio
class TestBroadcastAll:
    """Tests for PresenceRegistry.broadcast_all()."""

    async def test_sends_event_to_every_handle(self, presence):
        presence.register("u1", "chan-1")
        presence.register("u2", "chan-2")
        layer = AsyncMock()

        delivered = await presence.broadcast_all(layer, "test", {"ping": 1})

        assert delivered == 2
        sent_to = sorted(call.args[0] for call in layer.send.await_args_list)
        assert sent_to == ["chan-1", "chan-2"]
        assert layer.send.await_args_list[0].args[1] == {
            "type": "chat.event",
            "event": "test",
            "data": {"ping": 1},
        }

    async def test_failing_handle_does_not_stop_broadcast(self, presence):
        presence.register("u1", "chan-1")
        presence.register("u2", "chan-2")
        layer = AsyncMock()
        layer.send.side_effect = [RuntimeError("layer down"), None]

        delivered = await presence.broadcast_all(layer, "test", None)

        assert delivered == 1
        assert layer.send.await_count == 2


@pytest.mark.asyncio
class TestPresenceLifespan:
    """Tests for the ASGI lifespan handler."""

    async def test_shutdown_clears_registry(self, presence):
        presence.register("u1", "chan-1")
        messages = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        receive = AsyncMock(side_effect=messages)
        send = AsyncMock()

        await PresenceLifespan(presence)({"type": "lifespan"}, receive, send)

        assert len(presence) == 0
        assert [call.args[0]["type"] for call in send.await_args_list] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
