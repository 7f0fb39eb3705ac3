"""
DRF authentication backed by the session cookie.

The chat read endpoints (chat list, history, search, mark-read) are called by
the same browser that holds the WebSocket, so they authenticate with the same
cookie instead of a separate token.

Usage in settings:
    REST_FRAMEWORK = {
        "DEFAULT_AUTHENTICATION_CLASSES": [
            "authentication.backends.PassportSessionAuthentication",
        ],
    }
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import authentication, exceptions

from authentication.sessions import get_active_user, get_session_user_id


class PassportSessionAuthentication(authentication.BaseAuthentication):
    """
    Authenticate a request from its session cookie.

    Returns None (anonymous) when no usable cookie is present so that other
    authentication classes may run. A well-formed session naming a user who
    does not exist or is inactive is rejected outright.
    """

    def authenticate(self, request):
        user_id = get_session_user_id(
            request.META.get("HTTP_COOKIE"),
            settings.CHAT_SESSION_COOKIE_KEY,
        )
        if user_id is None:
            return None

        user = get_active_user(user_id)
        if user is None:
            raise exceptions.AuthenticationFailed("Session user not found or inactive.")

        return (user, None)

    def authenticate_header(self, request):
        # Non-empty so unauthenticated requests get 401 rather than 403
        return 'Cookie realm="api"'
