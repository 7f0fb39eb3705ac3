"""
WebSocket consumers for the chat application.

This module implements the WebSocket consumer for real-time chat, handling
connection lifecycle, presence registration, and dispatch of inbound events
to the chat service layer.

Consumers:
    ChatConsumer: One instance per live WebSocket connection

Authentication:
    SessionCookieAuthMiddleware attaches the user to self.scope["user"].
    Anonymous connections are accepted but never registered, so nothing
    can be delivered to them and newMessage answers UNAUTHENTICATED.

Presence:
    The process-wide PresenceRegistry is injected through
    ``ChatConsumer.as_asgi(presence=...)``. The connection's channel name is
    its delivery handle.

Frames (both directions):
    {"type": "<event>", "data": <payload>}

Events (from client):
    - newMessage: {"text": str, "partnerId": str}
    - test: any payload, broadcast to every registered connection

Events (to client):
    - newMessage: DeliveryEnvelope payload (to recipient and sender echo)
    - test: broadcast payload
    - error: {"error_code": str, "message": str}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from core.exceptions import BaseApplicationError

from chat.constants import ChatEvent, ErrorCode
from chat.services import DeliveryRouter, MessageIngestionService

if TYPE_CHECKING:
    from chat.presence import PresenceRegistry

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat functionality.

    Handles:
        - Registering/unregistering the connection in the presence registry
        - Storing and routing newMessage events
        - Broadcasting test events
        - Reporting failures to the client as error events

    A failing event never closes the connection.

    Attributes:
        presence: Process-wide presence registry
        user_id: Identity of the connection (None if anonymous)
        router: Delivery router bound to this process's channel layer
    """

    def __init__(self, *args, presence: PresenceRegistry, **kwargs):
        super().__init__(*args, **kwargs)
        self.presence = presence
        self.user_id: str | None = None
        self.router: DeliveryRouter | None = None

    async def connect(self):
        """
        Handle WebSocket connection.

        Always accepts. Authenticated connections are registered as their
        user's live handle, replacing any previous one.
        """
        self.router = DeliveryRouter(self.presence, self.channel_layer)

        user = self.scope.get("user")
        if user is not None and user.is_authenticated:
            self.user_id = str(user.pk)
            self.presence.register(self.user_id, self.channel_name)
            logger.info(f"User {self.user_id} connected on {self.channel_name}")
        else:
            logger.info(f"Anonymous connection accepted on {self.channel_name}")

        await self.accept()

    async def disconnect(self, close_code):
        """
        Handle WebSocket disconnection.

        Only removes the registry entry if it still points at this
        connection.
        """
        if self.user_id is None:
            return

        self.presence.unregister(self.user_id, self.channel_name)
        logger.info(
            f"User {self.user_id} disconnected from {self.channel_name} "
            f"(code={close_code})"
        )

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """
        Decode an inbound frame.

        Frames that are not JSON text get an INVALID_PAYLOAD error instead
        of tearing down the connection.
        """
        if text_data is None:
            await self._send_error(ErrorCode.INVALID_PAYLOAD, "Frames must be JSON text")
            return

        try:
            content = await self.decode_json(text_data)
        except ValueError:
            logger.debug(f"Undecodable frame on {self.channel_name}")
            await self._send_error(ErrorCode.INVALID_PAYLOAD, "Frames must be JSON text")
            return

        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an inbound event.

        Expected frame format:
            {"type": "newMessage", "data": {"text": "Hi", "partnerId": "..."}}
            {"type": "test", "data": {...}}

        Args:
            content: Parsed JSON frame from client
        """
        if not isinstance(content, dict):
            await self._send_error(ErrorCode.INVALID_PAYLOAD, "Frames must be objects")
            return

        event = content.get("type")
        handlers = {
            ChatEvent.NEW_MESSAGE: self._handle_new_message,
            ChatEvent.TEST: self._handle_test,
        }
        handler = handlers.get(event)
        if handler is None:
            await self._send_error(ErrorCode.UNKNOWN_EVENT, f"Unknown event type: {event}")
            return

        try:
            await handler(content.get("data"))
        except BaseApplicationError as e:
            logger.warning(f"{event} from {self.channel_name} failed: {e}")
            await self._send_error(e.error_code, e.message)
        except Exception:
            logger.exception(f"Unhandled error processing {event} from {self.channel_name}")
            await self._send_error(ErrorCode.INTERNAL_ERROR, "Internal error")

    async def _handle_new_message(self, data):
        """
        Store a message and route it.

        The message is persisted before any push; the recipient gets it if
        online and the sender always gets the echo.
        """
        if not isinstance(data, dict):
            await self._send_error(
                ErrorCode.INVALID_PAYLOAD,
                "newMessage data must be an object",
            )
            return

        result = await self._ingest(data.get("text"), data.get("partnerId"))
        if not result:
            await self._send_error(result.error_code, result.error)
            return

        envelope = result.data
        await self.router.deliver(envelope, envelope.recipient_id, self.channel_name)

    async def _handle_test(self, data):
        """Broadcast a test payload to every registered connection."""
        delivered = await self.presence.broadcast_all(
            self.channel_layer,
            ChatEvent.TEST,
            data,
        )
        logger.debug(f"Test event from {self.channel_name} sent to {delivered} connections")

    async def chat_event(self, event):
        """
        Handle chat.event messages from the channel layer.

        Sends the event to the WebSocket client.
        """
        await self.send_json(
            {
                "type": event["event"],
                "data": event["data"],
            }
        )

    async def _send_error(self, error_code: str, message: str):
        await self.send_json(
            {
                "type": ChatEvent.ERROR,
                "error_code": error_code,
                "message": message,
            }
        )

    @database_sync_to_async
    def _ingest(self, text, partner_id):
        """Store a message using MessageIngestionService."""
        return MessageIngestionService.ingest(
            author_id=self.user_id,
            content=text,
            partner_id=partner_id,
        )
