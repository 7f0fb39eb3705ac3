"""
Authentication models.

User is the identity every chat operation is keyed by. The chat app reads
display fields (name, avatar) for previews and reaches a user's chats through
the reverse relation ``user.chats`` (defined on ``chat.Chat.members``).

Related files:
    - managers.py: Custom user manager for email-based creation
    - sessions.py: Session cookie -> user id
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.models import UUIDPrimaryKeyMixin


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Platform user.

    The UUID primary key is the identity stored in the session cookie
    (``passport.user``) and carried on every WebSocket connection.

    Fields:
        id: UUID identity
        email: Login identifier, unique
        name: Display name shown in chat lists
        avatar: Avatar image URL shown in chat lists
        is_active: Inactive users cannot authenticate
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="User's email address (login identifier)",
    )

    name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Display name",
    )

    avatar = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Avatar image URL",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the display name, falling back to email."""
        return self.name or self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.name or self.email.split("@")[0]
