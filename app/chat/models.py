"""
Chat system models.

This module defines the data models for two-party chat:

Models:
    Chat: Conversation between exactly two users
    ChatMemberPair: Helper enforcing one chat per unordered user pair
    Message: A single message within a chat

Design Decisions:
    - A chat is created the first time two users exchange a message and is
      never deleted by the chat core
    - Membership is immutable once created (always exactly two members)
    - A user's chat set is the reverse relation ``user.chats``; adding the
      members to a chat is what "appends the chat to both users" means here
    - Insertion order of a chat's messages is the message primary key order;
      display order is by creation timestamp, newest first
    - ``read`` starts False and is only flipped by ReadStateService
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class Chat(BaseModel):
    """
    A conversation between two users.

    Uniqueness per user pair is enforced via ChatMemberPair, not by this
    table, since a constraint across two M2M rows cannot be expressed.

    Fields:
        members: The two participating users (reverse: ``user.chats``)
        last_message_at: Timestamp of most recent message (for sorting)

    Relationships:
        messages: All Message records for this chat
        member_pair: ChatMemberPair holding the canonical user pair
    """

    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="chats",
        help_text="The two users in this chat",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting chat lists)",
    )

    class Meta:
        db_table = "chat_chat"
        ordering = ["-last_message_at", "-created_at"]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Chat({self.pk})"

    def get_partner(self, user: User) -> User | None:
        """
        Get the member who is not ``user``.

        Uses prefetched members when available.

        Returns:
            The other member, or None if ``user`` is alone in the chat
        """
        for member in self.members.all():
            if member.pk != user.pk:
                return member
        return None

    def has_member(self, user: User) -> bool:
        """Check if ``user`` is one of the chat's members."""
        return self.members.filter(pk=user.pk).exists()


class ChatMemberPair(models.Model):
    """
    Enforces uniqueness of chats between two users.

    Stores the user pair in canonical order (lower user id first) so that
    A->B and B->A resolve to the same row. The unique constraint is what
    closes the find-or-create race in ChatResolver: a concurrent second
    creator fails with IntegrityError and re-reads the winner.

    Fields:
        chat: The chat (OneToOne, serves as PK)
        user_lower: Member with the lower id
        user_higher: Member with the higher id

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One chat per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    chat = models.OneToOneField(
        Chat,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="member_pair",
        help_text="The chat this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Member with lower id in this pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Member with higher id in this pair",
    )

    class Meta:
        db_table = "chat_member_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_chat_member_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="chat_pair_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"ChatPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user_a_id, user_b_id) -> tuple[uuid.UUID, uuid.UUID]:
        """
        Order two user ids canonically.

        Args:
            user_a_id: UUID or UUID string
            user_b_id: UUID or UUID string

        Returns:
            (lower, higher) as UUID instances
        """
        a = user_a_id if isinstance(user_a_id, uuid.UUID) else uuid.UUID(str(user_a_id))
        b = user_b_id if isinstance(user_b_id, uuid.UUID) else uuid.UUID(str(user_b_id))
        return (a, b) if a < b else (b, a)


class Message(BaseModel):
    """
    A message within a chat.

    ``created_at`` is the message timestamp (``date`` on the wire).

    Fields:
        chat: Chat this message belongs to
        author: User who sent the message
        content: Message text
        read: Whether the recipient has read the message
    """

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Chat this message belongs to",
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_messages",
        help_text="User who sent this message",
    )

    content = models.TextField(
        help_text="Message text",
    )

    read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # History paging within a chat
            models.Index(
                fields=["chat", "-created_at"],
                name="chat_msg_chat_created_idx",
            ),
            # Unread lookups within a chat
            models.Index(
                fields=["chat", "read"],
                name="chat_msg_chat_read_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        content_preview = (
            self.content[:50] + "..." if len(self.content) > 50 else self.content
        )
        return f"User {self.author_id}: {content_preview}"
