"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat inspection with members and pair
- Message moderation
"""

from django.contrib import admin

from chat.models import Chat, ChatMemberPair, Message


class ChatMemberPairInline(admin.StackedInline):
    """Inline display of the canonical member pair in chat admin."""

    model = ChatMemberPair
    extra = 0
    can_delete = False
    raw_id_fields = ["user_lower", "user_higher"]


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    """Admin interface for Chat model."""

    list_display = [
        "id",
        "member_names",
        "created_at",
        "last_message_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["members__email", "members__name", "id"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    filter_horizontal = ["members"]
    inlines = [ChatMemberPairInline]
    ordering = ["-last_message_at"]

    @admin.display(description="Members")
    def member_names(self, obj: Chat) -> str:
        """Return both members for list display."""
        return ", ".join(str(member) for member in obj.members.all())

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("members")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "chat",
        "author",
        "content_preview",
        "read",
        "created_at",
    ]
    list_filter = ["read", "created_at"]
    search_fields = ["content", "author__email", "author__name"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["chat", "author"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
