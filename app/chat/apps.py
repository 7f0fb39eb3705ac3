"""
Chat application configuration.

This app provides two-party chat with:
- One chat per user pair, created on first message
- Live delivery over WebSockets to online recipients
- Chat list previews and paged message history
- Read tracking
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
