"""
Tests for the User model.

Test Organization:
    - Field constraints
    - String representation and display helpers
"""

import pytest
from django.db import IntegrityError

from authentication.tests.factories import UserFactory


class TestUserModel:
    """
    Tests for the User model.

    Why it matters: chat lists render the partner's name and avatar, and
    every chat operation is keyed by the user's UUID.
    """

    def test_email_is_unique(self, db):
        """Two users cannot share an email."""
        UserFactory(email="dup@example.com")

        with pytest.raises(IntegrityError):
            UserFactory(email="dup@example.com")

    def test_str_prefers_name(self, db):
        """String form is the display name when set."""
        user = UserFactory(name="Ann", email="ann@example.com")

        assert str(user) == "Ann"

    def test_str_falls_back_to_email(self, db):
        """String form is the email when no name is set."""
        user = UserFactory(name="", email="anon@example.com")

        assert str(user) == "anon@example.com"

    def test_short_name_uses_email_local_part(self, db):
        """Short name falls back to the part of the email before @."""
        user = UserFactory(name="", email="bob@example.com")

        assert user.get_short_name() == "bob"

    def test_defaults(self, db):
        """New users are active, non-staff, with blank avatar allowed."""
        user = UserFactory(avatar="")

        assert user.is_active is True
        assert user.is_staff is False
        assert user.avatar == ""
