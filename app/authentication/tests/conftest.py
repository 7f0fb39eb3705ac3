"""
Test configuration and fixtures for authentication tests.

This module provides:
- Reusable user fixtures
- Session cookie helpers for authenticated requests

Usage:
    def test_example(user, session_cookie_header):
        user_id = get_session_user_id(session_cookie_header, "sess:key")
        assert user_id == str(user.id)
"""

import pytest
from rest_framework.test import APIRequestFactory

from authentication.models import User
from authentication.tests.factories import UserFactory, make_session_cookie


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic active user."""
    return UserFactory(name="Ann Example")


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!"
    )


@pytest.fixture
def deactivated_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


# =============================================================================
# Session Cookie Fixtures
# =============================================================================


@pytest.fixture
def session_cookie_header(user, settings):
    """Cookie header carrying ``user``'s session."""
    return f"{settings.CHAT_SESSION_COOKIE_KEY}={make_session_cookie(user.id)}"


@pytest.fixture
def request_factory():
    """DRF request factory for exercising authentication classes directly."""
    return APIRequestFactory()
