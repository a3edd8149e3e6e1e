"""Routes inbound chat events to the connections that should see them.

Delivery is fire-and-forget: one ``emit`` per recipient, no acknowledgement,
no retry, nothing queued for users who are not connected.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol

from django.utils import timezone

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from collections.abc import Callable
    from collections.abc import Iterable

    from .registry import ConnectionRecord
    from .registry import ConnectionRegistry

    ParticipantResolver = Callable[[int | str], Awaitable[set[int] | None]]

logger = logging.getLogger(__name__)

# Outbound event names (client contract)
EVENT_GET_USERS = "getUsers"
EVENT_GET_MESSAGE = "getMessage"
EVENT_USER_TYPING = "userTyping"
EVENT_USER_STOPPED_TYPING = "userStoppedTyping"
EVENT_MESSAGES_READ = "messagesRead"


class Emitter(Protocol):
    async def emit(
        self,
        event: str,
        data: Any = None,
        to: str | None = None,
        **kwargs: Any,
    ) -> None: ...


class EventRouter:
    """Resolves recipients for chat events and emits reshaped payloads.

    ``participant_resolver`` is an optional coroutine returning the user ids of
    a chat's participants (``None`` for an unknown chat). When set, typing and
    read-receipt events only reach connected participants of that chat;
    otherwise they reach every registered user except the sender.
    """

    def __init__(
        self,
        server: Emitter,
        registry: ConnectionRegistry,
        *,
        participant_resolver: ParticipantResolver | None = None,
    ) -> None:
        self.server = server
        self.registry = registry
        self.participant_resolver = participant_resolver

    # Presence ------------------------------------------------------------------
    async def broadcast_roster(self) -> None:
        roster = [record.as_payload() for record in self.registry.snapshot()]
        await self.server.emit(EVENT_GET_USERS, roster)

    async def add_user(self, user_id: int, connection_id: str) -> bool:
        added = self.registry.register(user_id, connection_id)
        if added:
            logger.info("User %s online on %s", user_id, connection_id)
        await self.broadcast_roster()
        return added

    async def disconnect(self, connection_id: str) -> ConnectionRecord | None:
        record = self.registry.unregister(connection_id)
        if record is not None:
            logger.info("User %s offline (%s)", record.user_id, connection_id)
        await self.broadcast_roster()
        return record

    # Messaging -----------------------------------------------------------------
    async def send_message(
        self,
        sender_id: int,
        receiver_id: int,
        chat_id: int | str,
        content: str,
    ) -> bool:
        """Unicast ``getMessage`` to the receiver; return whether it was sent."""
        record = self.registry.lookup(receiver_id)
        if record is None:
            logger.debug("Receiver %s offline; message dropped", receiver_id)
            return False
        payload = {
            "senderId": sender_id,
            "content": content,
            "chatId": chat_id,
            "createdAt": timezone.now().isoformat(),
        }
        await self.server.emit(EVENT_GET_MESSAGE, payload, to=record.connection_id)
        return True

    async def typing(self, user_id: int, chat_id: int | str) -> int:
        payload = {"chatId": chat_id, "userId": user_id}
        recipients = await self._recipients(user_id, chat_id)
        return await self._fan_out(EVENT_USER_TYPING, payload, recipients)

    async def stop_typing(self, user_id: int, chat_id: int | str) -> int:
        payload = {"chatId": chat_id, "userId": user_id}
        recipients = await self._recipients(user_id, chat_id)
        return await self._fan_out(EVENT_USER_STOPPED_TYPING, payload, recipients)

    async def mark_as_read(
        self,
        user_id: int,
        chat_id: int | str,
        message_ids: Iterable[int | str],
    ) -> int:
        payload = {"chatId": chat_id, "userId": user_id, "messageIds": list(message_ids)}
        recipients = await self._recipients(user_id, chat_id)
        return await self._fan_out(EVENT_MESSAGES_READ, payload, recipients)

    # Helpers -------------------------------------------------------------------
    async def _recipients(
        self,
        sender_id: int,
        chat_id: int | str,
    ) -> list[ConnectionRecord]:
        others = [r for r in self.registry.snapshot() if r.user_id != sender_id]
        if self.participant_resolver is None or not others:
            return others
        participants = await self.participant_resolver(chat_id)
        if not participants:
            return []
        return [r for r in others if r.user_id in participants]

    async def _fan_out(
        self,
        event: str,
        payload: dict[str, Any],
        recipients: list[ConnectionRecord],
    ) -> int:
        for record in recipients:
            await self.server.emit(event, payload, to=record.connection_id)
        return len(recipients)
