from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from itemchat.realtime.router import EVENT_GET_MESSAGE
from itemchat.realtime.router import EVENT_MESSAGES_READ
from itemchat.realtime.socketio import emit_event_to_user

if TYPE_CHECKING:  # import for type checking only
    from collections.abc import Iterable

    from itemchat.chats.models import Message

logger = logging.getLogger(__name__)


def build_message_payload(message: Message) -> dict[str, Any]:
    return {
        "messageId": message.id,
        "senderId": message.sender_id,
        "content": message.content,
        "chatId": message.chat_id,
        "createdAt": message.created_at.isoformat(),
    }


def publish_message_created(message: Message) -> int:
    """Push a stored message to every other participant that is online.

    Returns the number of connections it was emitted to.
    """

    payload = build_message_payload(message)
    recipients = message.chat.participant_ids() - {message.sender_id}
    delivered = sum(
        emit_event_to_user(user_id, EVENT_GET_MESSAGE, payload)
        for user_id in sorted(recipients)
    )
    logger.debug(
        "Message %s pushed to %s of %s recipients",
        message.id,
        delivered,
        len(recipients),
    )
    return delivered


def publish_messages_read(
    *,
    chat_id: int,
    reader_id: int,
    message_ids: Iterable[int],
    participant_ids: Iterable[int],
) -> int:
    payload = {
        "chatId": chat_id,
        "userId": reader_id,
        "messageIds": list(message_ids),
    }
    recipients = set(participant_ids) - {reader_id}
    return sum(
        emit_event_to_user(user_id, EVENT_MESSAGES_READ, payload)
        for user_id in sorted(recipients)
    )
