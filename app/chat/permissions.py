"""
Permission classes for chat API.

This module provides DRF permission classes for the chat system:
- IsChatMember: User is one of the chat's two members

Design Decisions:
    - Membership is the only access rule; there are no roles
    - Non-members get 403, unknown chats 404 (get_object runs first)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.models import Chat

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsChatMember(permissions.BasePermission):
    """Allows access only to members of the chat."""

    message = "You are not a member of this chat."

    def has_object_permission(
        self, request: Request, view: APIView, obj: Chat
    ) -> bool:
        """Check if user is a member."""
        if not request.user.is_authenticated:
            return False

        return obj.has_member(request.user)
