"""
End-to-end tests for ChatConsumer over a real ASGI stack.

Connections go through SessionCookieAuthMiddleware and URLRouter exactly as
in config/asgi.py, with the in-memory channel layer.

Related files:
    - consumers.py: Implementation under test
    - services.py: Ingestion and delivery
    - presence.py: Registry shared by all connections of a test
"""

from unittest.mock import patch

import pytest
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from authentication.tests.factories import make_session_cookie
from chat.constants import ErrorCode
from chat.exceptions import StoreUnavailableError
from chat.middleware import SessionCookieAuthMiddleware
from chat.models import Chat, Message
from chat.routing import build_websocket_urlpatterns
from chat.services import MessageIngestionService

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


@pytest.fixture
def application(presence):
    return SessionCookieAuthMiddleware(URLRouter(build_websocket_urlpatterns(presence)))


async def open_connection(application, user=None):
    """Connect to ws/chat/, optionally with ``user``'s session cookie."""
    headers = []
    if user is not None:
        headers.append((b"cookie", f"sess:key={make_session_cookie(user.id)}".encode()))

    communicator = WebsocketCommunicator(application, "/ws/chat/", headers=headers)
    connected, _ = await communicator.connect()
    assert connected
    return communicator


def new_message(text, partner):
    return {"type": "newMessage", "data": {"text": text, "partnerId": str(partner.id)}}


@database_sync_to_async
def stored_messages():
    return list(Message.objects.values_list("content", "author_id", "read"))


class TestConnectionLifecycle:
    """
    Tests for connect/disconnect and presence registration.

    Why it matters: presence decides who can receive a live push.
    """

    async def test_authenticated_connection_is_registered(self, application, presence, ann):
        ws = await open_connection(application, ann)

        assert presence.lookup(ann.id) is not None

        await ws.disconnect()
        assert presence.lookup(ann.id) is None

    async def test_anonymous_connection_is_accepted_but_not_registered(
        self, application, presence
    ):
        ws = await open_connection(application)

        assert len(presence) == 0

        await ws.disconnect()

    async def test_reconnect_replaces_handle_and_old_close_keeps_new(
        self, application, presence, ann
    ):
        first = await open_connection(application, ann)
        first_handle = presence.lookup(ann.id)
        second = await open_connection(application, ann)
        second_handle = presence.lookup(ann.id)

        assert second_handle != first_handle

        await first.disconnect()
        assert presence.lookup(ann.id) == second_handle

        await second.disconnect()
        assert presence.lookup(ann.id) is None


class TestNewMessage:
    """
    Tests for the newMessage event.

    Why it matters: this is the whole send path: persist, then push to the
    online recipient, then echo to the sender.
    """

    async def test_online_partner_receives_and_sender_gets_echo(self, application, ann, bob):
        ann_ws = await open_connection(application, ann)
        bob_ws = await open_connection(application, bob)

        await ann_ws.send_json_to(new_message("hi", bob))

        received = await bob_ws.receive_json_from(timeout=2)
        echoed = await ann_ws.receive_json_from(timeout=2)

        assert received["type"] == "newMessage"
        assert received == echoed
        payload = received["data"]
        assert payload["content"] == "hi"
        assert payload["userId"] == str(ann.id)
        assert payload["read"] is False
        assert set(payload) == {"chatId", "messageId", "read", "userId", "content", "date"}

        assert await stored_messages() == [("hi", ann.id, False)]
        chat = await database_sync_to_async(Chat.objects.get)()
        assert payload["chatId"] == chat.id

        await ann_ws.disconnect()
        await bob_ws.disconnect()

    async def test_offline_partner_message_is_stored_and_echoed(self, application, ann, bob):
        ann_ws = await open_connection(application, ann)

        await ann_ws.send_json_to(new_message("are you there?", bob))
        echoed = await ann_ws.receive_json_from(timeout=2)

        assert echoed["data"]["content"] == "are you there?"
        assert await stored_messages() == [("are you there?", ann.id, False)]
        assert await ann_ws.receive_nothing(timeout=0.1)

        await ann_ws.disconnect()

    async def test_message_goes_to_latest_connection_only(self, application, ann, bob):
        ann_old = await open_connection(application, ann)
        ann_new = await open_connection(application, ann)
        bob_ws = await open_connection(application, bob)

        await bob_ws.send_json_to(new_message("ping", ann))

        assert (await ann_new.receive_json_from(timeout=2))["data"]["content"] == "ping"
        assert await ann_old.receive_nothing(timeout=0.1)

        for ws in (ann_old, ann_new, bob_ws):
            await ws.disconnect()

    async def test_anonymous_sender_gets_unauthenticated_error(self, application, bob):
        ws = await open_connection(application)

        await ws.send_json_to(new_message("hi", bob))
        reply = await ws.receive_json_from(timeout=2)

        assert reply["type"] == "error"
        assert reply["error_code"] == ErrorCode.UNAUTHENTICATED
        assert await stored_messages() == []

        await ws.disconnect()

    async def test_validation_failure_is_reported_to_sender(self, application, ann, bob):
        ws = await open_connection(application, ann)

        await ws.send_json_to(new_message("   ", bob))
        reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.EMPTY_CONTENT

        await ws.disconnect()

    async def test_non_object_data_is_invalid_payload(self, application, ann):
        ws = await open_connection(application, ann)

        await ws.send_json_to({"type": "newMessage", "data": "hi"})
        reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.INVALID_PAYLOAD

        await ws.disconnect()

    async def test_store_failure_is_reported_and_connection_survives(
        self, application, ann, bob
    ):
        ws = await open_connection(application, ann)

        with patch.object(
            MessageIngestionService,
            "ingest",
            side_effect=StoreUnavailableError("Could not store message"),
        ):
            await ws.send_json_to(new_message("hi", bob))
            reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.STORE_UNAVAILABLE

        await ws.send_json_to(new_message("retry", bob))
        assert (await ws.receive_json_from(timeout=2))["data"]["content"] == "retry"

        await ws.disconnect()

    async def test_unexpected_error_is_internal_error(self, application, ann, bob):
        ws = await open_connection(application, ann)

        with patch.object(
            MessageIngestionService, "ingest", side_effect=RuntimeError("bug")
        ):
            await ws.send_json_to(new_message("hi", bob))
            reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.INTERNAL_ERROR

        await ws.disconnect()


class TestOtherEvents:
    """Tests for test broadcasts and malformed frames."""

    async def test_test_event_is_broadcast_to_all_registered(self, application, ann, bob):
        ann_ws = await open_connection(application, ann)
        bob_ws = await open_connection(application, bob)
        anon_ws = await open_connection(application)

        await anon_ws.send_json_to({"type": "test", "data": {"ping": 1}})

        assert await ann_ws.receive_json_from(timeout=2) == {"type": "test", "data": {"ping": 1}}
        assert await bob_ws.receive_json_from(timeout=2) == {"type": "test", "data": {"ping": 1}}
        assert await anon_ws.receive_nothing(timeout=0.1)

        for ws in (ann_ws, bob_ws, anon_ws):
            await ws.disconnect()

    async def test_invalid_json_is_reported_not_fatal(self, application, ann):
        ws = await open_connection(application, ann)

        await ws.send_to(text_data="{not json")
        reply = await ws.receive_json_from(timeout=2)
        assert reply["error_code"] == ErrorCode.INVALID_PAYLOAD

        await ws.send_json_to({"type": "test", "data": None})
        assert (await ws.receive_json_from(timeout=2))["type"] == "test"

        await ws.disconnect()

    async def test_binary_frame_is_invalid_payload(self, application, ann):
        ws = await open_connection(application, ann)

        await ws.send_to(bytes_data=b"\x00\x01")
        reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.INVALID_PAYLOAD

        await ws.disconnect()

    async def test_unknown_event_type(self, application, ann):
        ws = await open_connection(application, ann)

        await ws.send_json_to({"type": "typing", "data": {}})
        reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.UNKNOWN_EVENT

        await ws.disconnect()

    async def test_non_object_frame(self, application, ann):
        ws = await open_connection(application, ann)

        await ws.send_json_to(["newMessage"])
        reply = await ws.receive_json_from(timeout=2)

        assert reply["error_code"] == ErrorCode.INVALID_PAYLOAD

        await ws.disconnect()
