from unittest import mock

import pytest

from itemchat.realtime.events.chat import build_message_payload
from itemchat.realtime.events.chat import publish_message_created
from itemchat.realtime.events.chat import publish_messages_read
from itemchat.realtime.router import EVENT_GET_MESSAGE
from itemchat.realtime.router import EVENT_MESSAGES_READ
from itemchat.realtime.socketio import emit_event_to_user
from itemchat.realtime.socketio import gateway
from tests.factories import create_chat
from tests.factories import create_message
from tests.factories import create_user

EMIT = "itemchat.realtime.socketio.emit_event_to_connection"

pytestmark = pytest.mark.django_db


@pytest.fixture(autouse=True)
def _clean_registry():
    gateway.registry.clear()
    yield
    gateway.registry.clear()


def test_emit_to_offline_user_is_noop():
    with mock.patch(EMIT) as emit:
        assert emit_event_to_user(42, "anything", {}) is False
    emit.assert_not_called()


def test_emit_to_online_user():
    gateway.registry.register(42, "sid-42")
    with mock.patch(EMIT) as emit:
        assert emit_event_to_user(42, "anything", {"a": 1}) is True
    emit.assert_called_once_with("sid-42", "anything", {"a": 1})


def test_message_created_reaches_online_participants(user, other_user):
    carol = create_user("carol")
    chat = create_chat([user, other_user, carol])
    message = create_message(chat, user, "hi all")
    gateway.registry.register(user.id, "sid-alice")
    gateway.registry.register(other_user.id, "sid-bob")

    with mock.patch(EMIT) as emit:
        delivered = publish_message_created(message)

    # Carol is offline and the sender never hears its own message.
    assert delivered == 1
    emit.assert_called_once_with(
        "sid-bob",
        EVENT_GET_MESSAGE,
        build_message_payload(message),
    )


def test_message_payload_shape(user, other_user):
    chat = create_chat([user, other_user])
    message = create_message(chat, user, "hello there")
    payload = build_message_payload(message)
    assert payload["messageId"] == message.id
    assert payload["senderId"] == user.id
    assert payload["chatId"] == chat.id
    assert payload["content"] == "hello there"
    assert payload["createdAt"] == message.created_at.isoformat()


def test_saving_a_message_publishes_after_commit(
    user,
    other_user,
    django_capture_on_commit_callbacks,
):
    chat = create_chat([user, other_user])
    gateway.registry.register(other_user.id, "sid-bob")

    with (
        mock.patch(EMIT) as emit,
        django_capture_on_commit_callbacks(execute=True) as callbacks,
    ):
        create_message(chat, user, "ping")

    assert len(callbacks) == 1
    assert emit.call_count == 1
    sid, event, payload = emit.call_args.args
    assert (sid, event, payload["content"]) == ("sid-bob", EVENT_GET_MESSAGE, "ping")


def test_messages_read_skips_reader(user, other_user):
    gateway.registry.register(user.id, "sid-alice")
    gateway.registry.register(other_user.id, "sid-bob")

    with mock.patch(EMIT) as emit:
        delivered = publish_messages_read(
            chat_id=7,
            reader_id=other_user.id,
            message_ids=[1, 2],
            participant_ids={user.id, other_user.id},
        )

    assert delivered == 1
    emit.assert_called_once_with(
        "sid-alice",
        EVENT_MESSAGES_READ,
        {"chatId": 7, "userId": other_user.id, "messageIds": [1, 2]},
    )
