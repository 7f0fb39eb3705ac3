"""
Chat app for real-time two-party messaging.

This app handles:
- Chats between exactly two users, created on first contact
- Message storage and history
- WebSocket live delivery with in-process presence
- Chat list previews, partner search and read receipts

Related apps:
    - authentication: User model and session cookie identity
    - core: Base models, ServiceResult, exception hierarchy

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.
    See presence.py for the live connection registry.

Usage:
    from chat.services import MessageIngestionService

    result = MessageIngestionService.ingest(
        author_id=user.id,
        content="Hello!",
        partner_id=partner.id,
    )
"""
