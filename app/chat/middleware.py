"""
WebSocket authentication middleware.

Derives the connection's identity from the session cookie sent with the
WebSocket handshake and attaches the user to ``scope["user"]``.

Related files:
    - authentication/sessions.py: Cookie decoding
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers
    - config/asgi.py: ASGI configuration

A missing, malformed or unknown session yields AnonymousUser; the
connection is still handed to the consumer, which accepts it without
registering presence.

Usage in config/asgi.py:
    from chat.middleware import SessionCookieAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": SessionCookieAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth.models import AnonymousUser

from authentication.sessions import get_active_user, get_session_user_id

logger = logging.getLogger(__name__)


class SessionCookieAuthMiddleware(BaseMiddleware):
    """
    Session cookie authentication middleware for WebSocket connections.

    Reads the cookie named by ``settings.CHAT_SESSION_COOKIE_KEY`` from the
    handshake headers, decodes ``passport.user`` and loads that user.
    """

    async def __call__(self, scope, receive, send):
        """
        Process WebSocket connection.

        Authenticates user and adds to scope before
        passing to inner application.
        """
        scope = dict(scope)

        user_id = get_session_user_id(
            self._get_cookie_header(scope),
            settings.CHAT_SESSION_COOKIE_KEY,
        )

        user = await self._get_user(user_id) if user_id else None
        scope["user"] = user or AnonymousUser()

        return await super().__call__(scope, receive, send)

    def _get_cookie_header(self, scope) -> str | None:
        """Join all Cookie headers of the handshake, or None if absent."""
        values = [
            value.decode("latin1")
            for name, value in scope.get("headers", [])
            if name.lower() == b"cookie"
        ]
        return "; ".join(values) if values else None

    @database_sync_to_async
    def _get_user(self, user_id: str):
        return get_active_user(user_id)
