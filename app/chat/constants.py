"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message ingestion (content limits)
- Message history paging
- Presence and WebSocket events
- Error codes shared by services, the consumer and the REST views

The session cookie name is a Django setting (CHAT_SESSION_COOKIE_KEY) since
it must match the web front end of each deployment.

Import example:
    from chat.constants import MESSAGE_CONFIG, ChatEvent, ErrorCode
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MIN_CONTENT_LENGTH: Final[int] = 1


# =============================================================================
# History Configuration
# =============================================================================


class HISTORY_CONFIG:
    """Configuration for message history paging."""

    DEFAULT_PAGE_SIZE: Final[int] = 20
    MAX_PAGE_SIZE: Final[int] = 100


# =============================================================================
# Presence / WebSocket Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for presence and connection handling."""

    # Channel layer message type dispatched to ChatConsumer.chat_event
    CHANNEL_EVENT_TYPE: Final[str] = "chat.event"


class ChatEvent:
    """Event names carried in the ``type`` field of WebSocket frames."""

    NEW_MESSAGE = "newMessage"
    TEST = "test"
    ERROR = "error"


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Machine-readable error codes surfaced to clients."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    CONTENT_TOO_LONG = "CONTENT_TOO_LONG"
    INVALID_PARTNER = "INVALID_PARTNER"
    SAME_USER = "SAME_USER"
    PARTNER_NOT_FOUND = "PARTNER_NOT_FOUND"
    NOT_MEMBER = "NOT_MEMBER"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
