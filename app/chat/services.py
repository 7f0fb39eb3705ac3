"""
Chat system service layer.

This module provides the business logic for two-party chat, encapsulating
all operations on chats and messages.

Services:
    ChatResolver: Find-or-create the chat for a user pair
    MessageIngestionService: Persist an inbound message into its chat
    DeliveryRouter: Push a stored message to the live connections involved
    ChatListService: Per-chat previews for a user's chat list
    MessageHistoryService: Newest-first pages of a chat's messages
    ReadStateService: Mark a chat's incoming messages as read

Design Principles:
    - Database services are stateless (class methods) and synchronous; the
      consumer calls them through database_sync_to_async
    - Expected failures return ServiceResult.failure()
    - Database failures raise StoreUnavailableError
    - DeliveryRouter is the one stateful, async piece: it holds the presence
      registry and channel layer of the process serving the connection

Usage:
    from chat.services import DeliveryRouter, MessageIngestionService

    result = MessageIngestionService.ingest(
        author_id=user.id,
        content="Hello!",
        partner_id=partner.id,
    )
    if result.success:
        await DeliveryRouter(presence, channel_layer).deliver(
            result.data, result.data.recipient_id, self.channel_name
        )
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError
from django.db.models import Prefetch

from core.exceptions import ValidationError
from core.helpers import validate_uuid
from core.services import BaseService, ServiceResult

from chat.constants import (
    HISTORY_CONFIG,
    MESSAGE_CONFIG,
    PRESENCE_CONFIG,
    ChatEvent,
    ErrorCode,
)
from chat.exceptions import DeliveryError, StoreUnavailableError
from chat.models import Chat, ChatMemberPair, Message

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from channels.layers import BaseChannelLayer

    from authentication.models import User
    from chat.presence import PresenceRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# Wire types
# =============================================================================


@dataclass(frozen=True)
class DeliveryEnvelope:
    """
    A stored message as pushed over a live connection.

    ``recipient_id`` addresses the delivery and is not part of the payload.
    """

    chat_id: int
    message_id: int
    read: bool
    user_id: uuid.UUID
    content: str
    date: datetime
    recipient_id: str

    @classmethod
    def from_message(cls, message: Message, recipient_id) -> DeliveryEnvelope:
        return cls(
            chat_id=message.chat_id,
            message_id=message.id,
            read=message.read,
            user_id=message.author_id,
            content=message.content,
            date=message.created_at,
            recipient_id=str(recipient_id),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the ``newMessage`` event payload."""
        return {
            "chatId": self.chat_id,
            "messageId": self.message_id,
            "read": self.read,
            "userId": str(self.user_id),
            "content": self.content,
            "date": self.date.isoformat(),
        }


@dataclass
class ChatSummary:
    """One entry of a user's chat list."""

    chat: Chat
    partner: User | None
    members: list[User]
    messages: list[Message]
    unread_count: int


@dataclass
class MessagePage:
    """A window of a chat's history, newest first."""

    messages: list[Message] = field(default_factory=list)
    has_more: bool = False
    total: int = 0


# =============================================================================
# ChatResolver
# =============================================================================


class ChatResolver(BaseService):
    """
    Finds or creates the single chat between two users.

    Methods:
        resolve: Return the chat for a pair, creating it on first contact
    """

    @classmethod
    def resolve(cls, member_a_id, member_b_id) -> Chat:
        """
        Get the chat whose members are exactly {member_a, member_b}.

        Implementation:
            1. Canonicalize the pair (lower user id first)
            2. Look up the ChatMemberPair
            3. If missing, create Chat + ChatMemberPair + members in a
               transaction (a savepoint when called inside ingest)
            4. If creation hits the pair's unique constraint, another
               request created the chat first; return that one

        Adding both users as members is what puts the chat in each user's
        ``chats`` set.

        Args:
            member_a_id: First user id (UUID or string)
            member_b_id: Second user id (UUID or string)

        Returns:
            The existing or newly created Chat
        """
        lower, higher = ChatMemberPair.canonical(member_a_id, member_b_id)

        chat = cls._find(lower, higher)
        if chat is not None:
            cls.get_logger().debug(
                f"Found chat {chat.id} between users {lower} and {higher}"
            )
            return chat

        try:
            with cls.atomic():
                chat = Chat.objects.create()
                ChatMemberPair.objects.create(
                    chat=chat,
                    user_lower_id=lower,
                    user_higher_id=higher,
                )
                chat.members.add(lower, higher)
        except IntegrityError:
            chat = cls._find(lower, higher)
            if chat is None:
                raise
            cls.get_logger().info(
                f"Lost race creating chat for users {lower} and {higher}; "
                f"using chat {chat.id}"
            )
            return chat

        cls.get_logger().info(
            f"Created chat {chat.id} between users {lower} and {higher}"
        )
        return chat

    @classmethod
    def _find(cls, lower: uuid.UUID, higher: uuid.UUID) -> Chat | None:
        pair = (
            ChatMemberPair.objects.select_related("chat")
            .filter(user_lower_id=lower, user_higher_id=higher)
            .first()
        )
        return pair.chat if pair else None


# =============================================================================
# MessageIngestionService
# =============================================================================


class MessageIngestionService(BaseService):
    """
    Service for storing inbound chat messages.

    Methods:
        ingest: Validate, persist and append a message; build its envelope
    """

    @classmethod
    def ingest(
        cls,
        author_id,
        content,
        partner_id,
    ) -> ServiceResult[DeliveryEnvelope]:
        """
        Store a message from ``author_id`` to ``partner_id``.

        The chat is resolved (and created on first contact) and the message
        appended to it in one transaction, so a failure leaves nothing
        behind.

        Args:
            author_id: Identity of the sending connection (None if anonymous)
            content: Message text
            partner_id: Recipient user id

        Returns:
            ServiceResult with the DeliveryEnvelope of the stored message

        Error codes:
            UNAUTHENTICATED: Connection carries no identity
            EMPTY_CONTENT: Text is missing or blank
            CONTENT_TOO_LONG: Text exceeds MESSAGE_CONFIG.MAX_CONTENT_LENGTH
            INVALID_PARTNER: partnerId is not a user id
            SAME_USER: Sender and partner are the same user
            PARTNER_NOT_FOUND: No active user with that id

        Raises:
            StoreUnavailableError: The database failed
        """
        if author_id is None:
            return ServiceResult.failure(
                "User is not authenticated",
                error_code=ErrorCode.UNAUTHENTICATED,
            )

        if not isinstance(content, str):
            content = ""
        if len(content.strip()) < MESSAGE_CONFIG.MIN_CONTENT_LENGTH:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.EMPTY_CONTENT,
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content cannot exceed "
                f"{MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ErrorCode.CONTENT_TOO_LONG,
            )

        if not validate_uuid(str(partner_id) if partner_id else None):
            return ServiceResult.failure(
                "partnerId must be a user id",
                error_code=ErrorCode.INVALID_PARTNER,
            )
        partner_id = uuid.UUID(str(partner_id))
        author_id = uuid.UUID(str(author_id))

        if partner_id == author_id:
            return ServiceResult.failure(
                "Cannot send a message to yourself",
                error_code=ErrorCode.SAME_USER,
            )

        User = get_user_model()
        try:
            if not User.objects.filter(pk=partner_id, is_active=True).exists():
                return ServiceResult.failure(
                    "Chat partner not found",
                    error_code=ErrorCode.PARTNER_NOT_FOUND,
                )

            with cls.atomic():
                chat = ChatResolver.resolve(author_id, partner_id)
                message = Message.objects.create(
                    chat=chat,
                    author_id=author_id,
                    content=content,
                )
                chat.last_message_at = message.created_at
                chat.save(update_fields=["last_message_at", "updated_at"])
        except DatabaseError as exc:
            raise StoreUnavailableError(
                "Could not store message",
                details={"operation": "ingest"},
            ) from exc

        cls.get_logger().debug(
            f"User {author_id} sent message {message.id} to chat {chat.id}"
        )

        return ServiceResult.success(
            DeliveryEnvelope.from_message(message, recipient_id=partner_id)
        )


# =============================================================================
# DeliveryRouter
# =============================================================================


class DeliveryRouter:
    """
    Pushes stored messages to live connections.

    Delivery is fire-and-forget: nothing is awaited from the recipient,
    nothing is retried or queued, and a failed push never undoes the
    stored message.

    Attributes:
        presence: Registry used to find the recipient's connection
        channel_layer: Layer used to reach connections by channel name
    """

    def __init__(self, presence: PresenceRegistry, channel_layer: BaseChannelLayer):
        self.presence = presence
        self.channel_layer = channel_layer

    async def deliver(
        self,
        envelope: DeliveryEnvelope,
        recipient_id,
        sender_handle: str,
    ) -> bool:
        """
        Send ``envelope`` to the recipient if online, and always echo it
        to the sender.

        Args:
            envelope: The stored message
            recipient_id: User to deliver to
            sender_handle: Channel name of the sending connection

        Returns:
            True if the recipient's connection was handed the message
        """
        payload = envelope.to_payload()
        delivered = False

        recipient_handle = self.presence.lookup(recipient_id)
        if recipient_handle is None:
            logger.debug(f"Partner {recipient_id} is offline; skipping live push")
        else:
            delivered = await self._push(recipient_handle, ChatEvent.NEW_MESSAGE, payload)

        await self._push(sender_handle, ChatEvent.NEW_MESSAGE, payload)
        return delivered

    async def _push(self, handle: str, event: str, payload: dict[str, Any]) -> bool:
        try:
            await self.channel_layer.send(
                handle,
                {
                    "type": PRESENCE_CONFIG.CHANNEL_EVENT_TYPE,
                    "event": event,
                    "data": payload,
                },
            )
        except Exception as exc:
            error = DeliveryError(
                f"Could not push {event} to {handle}",
                details={"handle": handle, "event": event},
            )
            logger.warning(str(error), exc_info=exc)
            return False
        return True


# =============================================================================
# ChatListService
# =============================================================================


class ChatListService(BaseService):
    """
    Builds the chat list shown beside the conversation view.

    Methods:
        get_chats: Summaries of every chat of a user
        search_chats: Summaries filtered by partner name
        select_preview_messages: The messages a summary surfaces
    """

    @classmethod
    def get_chats(cls, user: User) -> list[ChatSummary]:
        """
        Summarize each chat in ``user.chats``.

        Each summary surfaces the chat's unread messages, newest first, or
        exactly the single latest message when nothing is unread.

        Returns:
            List of ChatSummary ordered by most recent activity
        """
        chats = user.chats.prefetch_related(
            "members",
            Prefetch(
                "messages",
                queryset=Message.objects.select_related("author"),
            ),
        )

        summaries = []
        for chat in chats:
            messages = list(chat.messages.all())
            summaries.append(
                ChatSummary(
                    chat=chat,
                    partner=chat.get_partner(user),
                    members=list(chat.members.all()),
                    messages=cls.select_preview_messages(messages),
                    unread_count=sum(1 for message in messages if not message.read),
                )
            )
        return summaries

    @classmethod
    def search_chats(cls, user: User, search_text: str | None) -> list[ChatSummary]:
        """
        Get the chat list filtered to partners whose name contains
        ``search_text`` (case-insensitive). Blank text matches everything.
        """
        summaries = cls.get_chats(user)
        needle = (search_text or "").strip().casefold()
        if not needle:
            return summaries
        return [
            summary
            for summary in summaries
            if summary.partner is not None
            and needle in summary.partner.name.casefold()
        ]

    @staticmethod
    def select_preview_messages(messages: list[Message]) -> list[Message]:
        """
        Pick the messages a chat summary shows.

        Returns:
            All unread messages newest first; otherwise a one-element list
            with the latest message (read or not); empty for no messages
        """
        ordered = sorted(
            messages,
            key=lambda message: (message.created_at, message.id),
            reverse=True,
        )
        unread = [message for message in ordered if not message.read]
        if unread:
            return unread
        return ordered[:1]


# =============================================================================
# MessageHistoryService
# =============================================================================


class MessageHistoryService(BaseService):
    """
    Pages through a chat's messages.

    Methods:
        get_page: Messages newest first from an offset, with a has-more flag
    """

    @classmethod
    def get_page(
        cls,
        chat: Chat,
        skip: int = 0,
        page_size: int = HISTORY_CONFIG.DEFAULT_PAGE_SIZE,
    ) -> MessagePage:
        """
        Get up to ``page_size`` messages starting ``skip`` from the newest.

        ``has_more`` compares against the chat's full message count, not
        the window.

        Raises:
            ValidationError: skip is negative or page_size out of range
        """
        if skip < 0:
            raise ValidationError("skip cannot be negative", details={"skip": skip})
        if not 1 <= page_size <= HISTORY_CONFIG.MAX_PAGE_SIZE:
            raise ValidationError(
                f"page_size must be between 1 and {HISTORY_CONFIG.MAX_PAGE_SIZE}",
                details={"page_size": page_size},
            )

        queryset = chat.messages.select_related("author").order_by("-created_at", "-id")
        messages = list(queryset[skip : skip + page_size])
        total = chat.messages.count()

        return MessagePage(
            messages=messages,
            has_more=(skip + len(messages)) < total,
            total=total,
        )


# =============================================================================
# ReadStateService
# =============================================================================


class ReadStateService(BaseService):
    """
    Owns the unread -> read transition of messages.

    Methods:
        mark_chat_read: Mark the other member's messages in a chat as read
    """

    @classmethod
    def mark_chat_read(cls, chat: Chat, user: User) -> ServiceResult[int]:
        """
        Mark every unread message in ``chat`` not written by ``user`` as read.

        Returns:
            ServiceResult with the number of messages updated

        Error codes:
            NOT_MEMBER: User is not in this chat
        """
        if not chat.has_member(user):
            return ServiceResult.failure(
                "You are not a member of this chat",
                error_code=ErrorCode.NOT_MEMBER,
            )

        updated = chat.messages.filter(read=False).exclude(author=user).update(read=True)

        cls.get_logger().debug(
            f"User {user.id} marked {updated} messages read in chat {chat.id}"
        )
        return ServiceResult.success(updated)
