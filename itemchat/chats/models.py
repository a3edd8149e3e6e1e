from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Count

if TYPE_CHECKING:
    from collections.abc import Iterable


class ChatQuerySet(models.QuerySet):
    def for_user(self, user) -> ChatQuerySet:
        return self.filter(participants=user)

    def with_exact_participants(self, user_ids: Iterable[int]) -> ChatQuerySet:
        """Chats whose participant set is exactly ``user_ids``."""
        ids = set(user_ids)
        qs = self.annotate(
            participant_count=Count("participants", distinct=True),
        ).filter(participant_count=len(ids))
        for user_id in ids:
            qs = qs.filter(participants__id=user_id)
        return qs.distinct()


class Chat(models.Model):
    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="chats",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    # Bumped on every new message so chat lists sort by activity.
    updated_at = models.DateTimeField(auto_now=True)

    objects = ChatQuerySet.as_manager()

    class Meta:
        ordering = ["-updated_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Chat({self.pk})"

    def participant_ids(self) -> set[int]:
        return set(self.participants.values_list("id", flat=True))


class MessageQuerySet(models.QuerySet):
    def unread_for(self, user) -> MessageQuerySet:
        """Messages written by someone else that ``user`` has not read yet."""
        return self.exclude(sender=user).exclude(read_by=user)


class Message(models.Model):
    chat = models.ForeignKey(Chat, on_delete=models.CASCADE, related_name="messages")
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    content = models.TextField()
    read_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="read_messages",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MessageQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Message({self.pk}) in chat {self.chat_id}"
