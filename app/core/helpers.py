"""
Small stateless helpers used across apps.

Usage:
    from core.helpers import validate_uuid

    if not validate_uuid(raw_user_id):
        return AnonymousUser()
"""

from __future__ import annotations

import uuid


def validate_uuid(value) -> bool:
    """
    Check if a value is a valid UUID string.

    Args:
        value: Candidate value (anything; non-strings are rejected)

    Returns:
        True if the value parses as a UUID

    Example:
        validate_uuid("550e8400-e29b-41d4-a716-446655440000")  # True
        validate_uuid({"id": 1})  # False
    """
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
        return True
    except ValueError:
        return False
