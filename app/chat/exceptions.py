"""
Chat-specific exceptions.

Exception Hierarchy:
    ExternalServiceError (core)
    └── ChatError - Base for chat infrastructure failures
        ├── StoreUnavailableError - Database operation failed during a chat operation
        └── DeliveryError - Channel layer push to a connection failed

Expected failures (unauthenticated sender, empty content, unknown partner)
are not exceptions; services return ServiceResult.failure for those.

Usage:
    from chat.exceptions import StoreUnavailableError

    try:
        ...
    except DatabaseError as exc:
        raise StoreUnavailableError(
            "Could not store message",
            details={"operation": "ingest"},
        ) from exc
"""

from __future__ import annotations

from core.exceptions import ExternalServiceError

from chat.constants import ErrorCode


class ChatError(ExternalServiceError):
    """Base exception for chat infrastructure failures."""

    default_error_code: str = "CHAT_ERROR"


class StoreUnavailableError(ChatError):
    """
    Raised when the data store fails while handling a chat operation.

    Nothing is retried; the in-flight event fails and the sender is told.
    """

    default_error_code: str = ErrorCode.STORE_UNAVAILABLE


class DeliveryError(ChatError):
    """
    Raised when pushing an event to a live connection fails.

    Delivery is fire-and-forget: DeliveryRouter logs this and carries on,
    the message stays persisted.
    """

    default_error_code: str = ErrorCode.DELIVERY_FAILED
