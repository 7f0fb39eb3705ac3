"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Chat, ChatMemberPair, Message model tests
- test_presence.py: PresenceRegistry and lifespan tests
- test_services.py: Resolver, ingestion, delivery, list, history, read state
- test_middleware.py: Session cookie WebSocket authentication
- test_consumers.py: WebSocket round trips
- test_views.py: REST API endpoint tests

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_consumers.py
"""
