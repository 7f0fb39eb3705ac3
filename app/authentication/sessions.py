"""
Session cookie decoding.

The web front end keeps its login session in a cookie whose value is
base64-encoded JSON; the logged-in user's id sits at ``passport.user``:

    sess:key=eyJwYXNzcG9ydCI6eyJ1c2VyIjoiNmYxYy4uLiJ9fQ==
    -> {"passport": {"user": "6f1c..."}}

Both the WebSocket handshake (chat.middleware) and the REST API
(authentication.backends) derive identity from this cookie through
``get_session_user_id``. The function is pure: malformed or missing input
yields ``None``, it never raises.

Usage:
    from authentication.sessions import get_session_user_id

    user_id = get_session_user_id(headers.get("cookie"), "sess:key")
    if user_id is None:
        ...  # not authenticated
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import TYPE_CHECKING

from django.http.cookie import parse_cookie

from authentication.exceptions import MalformedCredentialError
from core.helpers import validate_uuid

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def decode_session_cookie(value: str) -> dict[str, Any]:
    """
    Decode a session cookie value into its session object.

    Accepts standard and URL-safe base64, with or without padding.

    Args:
        value: Raw cookie value

    Returns:
        The decoded session dict

    Raises:
        MalformedCredentialError: Value is not base64 JSON describing an object
    """
    normalized = value.strip().replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)

    try:
        raw = base64.b64decode(normalized, validate=True)
        session = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise MalformedCredentialError(
            "Session cookie could not be decoded",
            details={"reason": exc.__class__.__name__},
        ) from exc

    if not isinstance(session, dict):
        raise MalformedCredentialError(
            "Session cookie does not contain an object",
            details={"reason": type(session).__name__},
        )

    return session


def extract_user_id(session: dict[str, Any]) -> str | None:
    """
    Pull the user identity out of a decoded session.

    ``passport.user`` is normally the id string itself; a serialized user
    object carrying ``id`` (or ``_id``) is accepted too. Empty values count
    as no identity.
    """
    passport = session.get("passport")
    if not isinstance(passport, dict):
        return None

    user = passport.get("user")
    if isinstance(user, dict):
        user = user.get("id") or user.get("_id")

    if isinstance(user, (str, int)) and not isinstance(user, bool):
        user = str(user).strip()
        return user or None

    return None


def get_session_user_id(cookie_header: str | None, cookie_key: str) -> str | None:
    """
    Resolve the authenticated user id from a raw Cookie header.

    Args:
        cookie_header: Value of the Cookie header (may be None or empty)
        cookie_key: Name of the session cookie

    Returns:
        The user id string, or None when the request is not authenticated
    """
    cookies = parse_cookie(cookie_header or "")
    session_cookie = cookies.get(cookie_key)
    if not session_cookie:
        return None

    try:
        session = decode_session_cookie(session_cookie)
    except MalformedCredentialError as exc:
        logger.warning(f"Ignoring malformed session cookie: {exc}")
        return None

    return extract_user_id(session)


def get_active_user(user_id: str | None):
    """
    Load the active user a session identity refers to.

    Args:
        user_id: Identity from get_session_user_id (may be None)

    Returns:
        User instance, or None if the id is malformed, unknown or inactive
    """
    from authentication.models import User

    if not validate_uuid(user_id):
        return None

    user = User.objects.filter(pk=user_id, is_active=True).first()
    if user is None:
        logger.warning(f"Session refers to unknown or inactive user {user_id}")
    return user
