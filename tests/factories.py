from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from rest_framework_simplejwt.tokens import AccessToken

from itemchat.chats.models import Chat
from itemchat.chats.models import Message

if TYPE_CHECKING:
    from collections.abc import Iterable

User = get_user_model()

TEST_PASSWORD = "TestPass123!"  # noqa: S105


def create_user(username: str, *, is_staff: bool = False, **extra):
    user = User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password=TEST_PASSWORD,
        **extra,
    )
    if is_staff:
        user.is_staff = True
        user.save(update_fields=["is_staff"])
    return user


def create_chat(participants: Iterable) -> Chat:
    chat = Chat.objects.create()
    chat.participants.set(participants)
    return chat


def create_message(chat: Chat, sender, content: str = "hello") -> Message:
    message = Message.objects.create(chat=chat, sender=sender, content=content)
    message.read_by.add(sender)
    return message


def access_token_for(user) -> str:
    return str(AccessToken.for_user(user))
