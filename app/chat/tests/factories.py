"""
Factory Boy factories for chat models.

Provides realistic test data generation for:
- Chat: Two-member chat with its canonical ChatMemberPair
- Message: Text message in a chat

Usage:
    from chat.tests.factories import ChatFactory, MessageFactory

    # Chat between two specific users
    chat = ChatFactory(user_a=ann, user_b=bob)

    # Message from ann in that chat
    message = MessageFactory(chat=chat, author=ann)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.models import Chat, ChatMemberPair, Message


class ChatFactory(factory.django.DjangoModelFactory):
    """
    Factory for Chat model.

    Creates the chat, its ChatMemberPair and both memberships, matching
    what ChatResolver does on first contact.

    Examples:
        # Chat between two fresh users
        chat = ChatFactory()

        # Chat between known users
        chat = ChatFactory(user_a=ann, user_b=bob)
    """

    class Meta:
        model = Chat
        skip_postgeneration_save = True

    user_a = factory.SubFactory(UserFactory)
    user_b = factory.SubFactory(UserFactory)

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Create the chat with its member pair and members."""
        user_a = kwargs.pop("user_a")
        user_b = kwargs.pop("user_b")

        chat = model_class.objects.create(**kwargs)
        lower, higher = ChatMemberPair.canonical(user_a.id, user_b.id)
        ChatMemberPair.objects.create(
            chat=chat,
            user_lower_id=lower,
            user_higher_id=higher,
        )
        chat.members.add(user_a, user_b)
        return chat


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Defaults to an unread message from one of the chat's members.

    Examples:
        message = MessageFactory(chat=chat, author=ann)
        read_message = MessageFactory(chat=chat, author=bob, read=True)
    """

    class Meta:
        model = Message

    chat = factory.SubFactory(ChatFactory)
    author = factory.LazyAttribute(lambda o: o.chat.members.order_by("email").first())
    content = factory.Faker("sentence")
    read = False
