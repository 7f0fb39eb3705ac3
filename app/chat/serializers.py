"""
Serializers for chat API.

This module provides serializers for the chat read API:
- User summaries (chat partner / message author)
- Messages
- Chat list summaries
- History paging query parameters

Serializer Hierarchy:
    ChatUserSerializer: id, name, avatar of a user
    MessageSerializer: Message with author details
    ChatSummarySerializer: One chat-list entry (built from ChatSummary)
    MessagePageSerializer: One page of history (built from MessagePage)
    MessagePageQuerySerializer: Validates skip/page_size query params

Design Decisions:
    - Read-only; messages are written over the WebSocket only
    - Summaries and pages are plain dataclasses from chat.services, so their
      serializers are plain Serializers rather than ModelSerializers
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.models import User
from chat.constants import HISTORY_CONFIG
from chat.models import Message


class ChatUserSerializer(serializers.ModelSerializer):
    """Minimal user representation shown in chats."""

    class Meta:
        model = User
        fields = ["id", "name", "avatar"]
        read_only_fields = fields


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Message serializer for chat lists and history.

    ``user`` is the author; ``date`` is the creation timestamp.
    """

    user = ChatUserSerializer(source="author", read_only=True)
    date = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "chat_id",
            "user",
            "content",
            "read",
            "date",
        ]
        read_only_fields = fields


# =============================================================================
# Chat Serializers
# =============================================================================


class ChatSummarySerializer(serializers.Serializer):
    """
    Serializer for chat list entries.

    ``messages`` holds the unread messages newest first, or just the latest
    message when nothing is unread.
    """

    id = serializers.IntegerField(source="chat.id", read_only=True)
    partner = ChatUserSerializer(read_only=True, allow_null=True)
    members = ChatUserSerializer(many=True, read_only=True)
    messages = MessageSerializer(many=True, read_only=True)
    unread_count = serializers.IntegerField(
        read_only=True,
        help_text="Number of unread messages in the chat",
    )


class MessagePageSerializer(serializers.Serializer):
    """One page of a chat's history, newest first."""

    messages = MessageSerializer(many=True, read_only=True)
    has_more = serializers.BooleanField(
        read_only=True,
        help_text="Whether older messages exist beyond this page",
    )
    total = serializers.IntegerField(
        read_only=True,
        help_text="Total number of messages in the chat",
    )


class MessagePageQuerySerializer(serializers.Serializer):
    """Query parameters for message history."""

    skip = serializers.IntegerField(
        required=False,
        default=0,
        min_value=0,
        help_text="Number of newest messages to skip",
    )
    page_size = serializers.IntegerField(
        required=False,
        default=HISTORY_CONFIG.DEFAULT_PAGE_SIZE,
        min_value=1,
        max_value=HISTORY_CONFIG.MAX_PAGE_SIZE,
        help_text=f"Messages per page (max {HISTORY_CONFIG.MAX_PAGE_SIZE})",
    )


class MarkReadResponseSerializer(serializers.Serializer):
    """Response of the mark-read endpoint."""

    marked_read = serializers.IntegerField(
        read_only=True,
        help_text="Number of messages marked as read",
    )
