from __future__ import annotations

from itemchat.chats.models import Chat


def chat_participant_ids(chat_id: int | str) -> set[int] | None:
    """User ids taking part in ``chat_id``, or ``None`` if there is no such chat."""
    try:
        pk = int(chat_id)
    except (TypeError, ValueError):
        return None
    chat = Chat.objects.filter(pk=pk).first()
    if chat is None:
        return None
    return chat.participant_ids()
