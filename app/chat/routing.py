"""
WebSocket URL routing for the chat application.

This module defines the URL patterns for WebSocket connections,
mapping paths to their corresponding consumers.

URL Patterns:
    ws/chat/ - The single live chat endpoint; recipients are addressed per
               message, not per URL

Authentication:
    The session cookie is sent with the handshake.
    SessionCookieAuthMiddleware decodes it and attaches the user to the
    consumer's scope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.urls import path

from chat import consumers

if TYPE_CHECKING:
    from chat.presence import PresenceRegistry


def build_websocket_urlpatterns(presence: PresenceRegistry) -> list:
    """Bind the chat consumer to ``presence`` and return its URL patterns."""
    return [
        path(
            "ws/chat/",
            consumers.ChatConsumer.as_asgi(presence=presence),
        ),
    ]
