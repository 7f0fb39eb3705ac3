"""
ViewSets for chat API.

This module provides the REST read API for the chat system:
- ChatViewSet: Chat list, partner search, message history and read marking

URL Structure:
    /api/v1/chat/chats/                    GET
    /api/v1/chat/chats/search/?q=          GET
    /api/v1/chat/chats/{id}/messages/      GET
    /api/v1/chat/chats/{id}/read/          POST

Sending messages is not exposed here; it happens over the WebSocket
(see consumers.py).

Design Decisions:
    - One GenericViewSet with custom actions; there is no chat CRUD
    - All operations use the service layer for business logic
    - Authentication uses the same session cookie as the WebSocket
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.models import Chat
from chat.permissions import IsChatMember
from chat.serializers import (
    ChatSummarySerializer,
    MarkReadResponseSerializer,
    MessagePageQuerySerializer,
    MessagePageSerializer,
)
from chat.services import (
    ChatListService,
    MessageHistoryService,
    ReadStateService,
)


class ChatViewSet(viewsets.GenericViewSet):
    """
    ViewSet for chat read operations.

    list:
        Chats of the current user. Each entry carries the unread messages
        (newest first), or the latest message when nothing is unread.

    search:
        Chat list filtered by partner name (case-insensitive substring).

    messages:
        One page of a chat's history, newest first.

    read:
        Mark the partner's messages in a chat as read.
    """

    queryset = Chat.objects.all()
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        """Member check for actions on a single chat."""
        if self.action in ("messages", "read"):
            return [IsAuthenticated(), IsChatMember()]
        return [IsAuthenticated()]

    @extend_schema(
        operation_id="list_chats",
        summary="List chats",
        responses={200: ChatSummarySerializer(many=True)},
        tags=["Chat"],
    )
    def list(self, request):
        """List the current user's chats."""
        summaries = ChatListService.get_chats(request.user)
        return Response(ChatSummarySerializer(summaries, many=True).data)

    @extend_schema(
        operation_id="search_chats",
        summary="Search chats by partner name",
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Text the partner's name must contain (case-insensitive)",
                required=False,
            ),
        ],
        responses={200: ChatSummarySerializer(many=True)},
        tags=["Chat"],
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        """Search chats by partner name."""
        summaries = ChatListService.search_chats(
            request.user,
            request.query_params.get("q"),
        )
        return Response(ChatSummarySerializer(summaries, many=True).data)

    @extend_schema(
        operation_id="list_chat_messages",
        summary="Get chat message history",
        parameters=[MessagePageQuerySerializer],
        responses={
            200: MessagePageSerializer,
            400: OpenApiResponse(description="Invalid skip or page_size"),
            403: OpenApiResponse(description="Not a member of this chat"),
            404: OpenApiResponse(description="Chat not found"),
        },
        tags=["Chat"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        """Get one page of messages, newest first."""
        chat = self.get_object()

        query = MessagePageQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        page = MessageHistoryService.get_page(
            chat,
            skip=query.validated_data["skip"],
            page_size=query.validated_data["page_size"],
        )
        return Response(MessagePageSerializer(page).data)

    @extend_schema(
        operation_id="mark_chat_read",
        summary="Mark chat as read",
        request=None,
        responses={
            200: MarkReadResponseSerializer,
            403: OpenApiResponse(description="Not a member of this chat"),
            404: OpenApiResponse(description="Chat not found"),
        },
        tags=["Chat"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Mark the partner's messages as read."""
        chat = self.get_object()

        result = ReadStateService.mark_chat_read(chat, request.user)

        if not result.success:
            return Response(
                result.to_response(),
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response({"marked_read": result.data})
