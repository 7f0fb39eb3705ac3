"""
Authentication-specific exceptions.

Exception Hierarchy:
    ValidationError (core)
    └── MalformedCredentialError - Session cookie present but undecodable

A malformed credential is never fatal: callers treat it as "not
authenticated" (see authentication.sessions.get_session_user_id).
"""

from __future__ import annotations

from core.exceptions import ValidationError


class MalformedCredentialError(ValidationError):
    """
    Raised when a session cookie cannot be decoded into a session object.

    Example:
        raise MalformedCredentialError(
            "Session cookie could not be decoded",
            details={"reason": "JSONDecodeError"},
        )
    """

    default_error_code: str = "MALFORMED_CREDENTIAL"
