"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures for the two sides of a chat plus an outsider
- Chat and message fixtures
- A fresh PresenceRegistry per test
- API client helpers authenticated by session cookie

Usage:
    def test_example(chat, ann_client):
        response = ann_client.get(f"/api/v1/chat/chats/{chat.id}/messages/")
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory, make_session_cookie
from chat.presence import PresenceRegistry
from chat.tests.factories import ChatFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def ann(db):
    """First chat member."""
    return UserFactory(name="Ann Archer")


@pytest.fixture
def bob(db):
    """Second chat member."""
    return UserFactory(name="Bob Baker")


@pytest.fixture
def outsider(db):
    """A user who is not a member of any test chat."""
    return UserFactory(name="Olga Outsider")


# =============================================================================
# Chat Fixtures
# =============================================================================


@pytest.fixture
def chat(ann, bob):
    """Existing chat between ann and bob, without messages."""
    return ChatFactory(user_a=ann, user_b=bob)


# =============================================================================
# Presence Fixtures
# =============================================================================


@pytest.fixture
def presence():
    """Fresh, empty presence registry."""
    return PresenceRegistry()


# =============================================================================
# API Client Fixtures
# =============================================================================


def cookie_header(user, settings) -> str:
    """Cookie header carrying ``user``'s session."""
    return f"{settings.CHAT_SESSION_COOKIE_KEY}={make_session_cookie(user.id)}"


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def ann_client(ann, settings):
    """API client authenticated as ann through the session cookie."""
    client = APIClient()
    client.credentials(HTTP_COOKIE=cookie_header(ann, settings))
    return client


@pytest.fixture
def bob_client(bob, settings):
    """API client authenticated as bob through the session cookie."""
    client = APIClient()
    client.credentials(HTTP_COOKIE=cookie_header(bob, settings))
    return client


@pytest.fixture
def outsider_client(outsider, settings):
    """API client authenticated as a non-member."""
    client = APIClient()
    client.credentials(HTTP_COOKIE=cookie_header(outsider, settings))
    return client
