import pytest
from asgiref.sync import async_to_sync

from itemchat.realtime.registry import ConnectionRegistry
from itemchat.realtime.router import EVENT_GET_MESSAGE
from itemchat.realtime.router import EVENT_GET_USERS
from itemchat.realtime.router import EVENT_MESSAGES_READ
from itemchat.realtime.router import EVENT_USER_STOPPED_TYPING
from itemchat.realtime.router import EVENT_USER_TYPING
from itemchat.realtime.router import EventRouter

from .fakes import FakeServer

ALICE, BOB, CAROL = 1, 2, 3


def make_router(participants=None):
    server = FakeServer()
    resolver = None
    if participants is not None:

        async def resolver(chat_id):
            return participants.get(chat_id)

    router = EventRouter(server, ConnectionRegistry(), participant_resolver=resolver)
    return router, server


@pytest.fixture
def online():
    """Alice on conn1 and Bob on conn2, emits recorded so far discarded."""
    router, server = make_router()
    async_to_sync(router.add_user)(ALICE, "conn1")
    async_to_sync(router.add_user)(BOB, "conn2")
    server.reset()
    return router, server


class TestPresence:
    def test_add_user_broadcasts_roster(self):
        router, server = make_router()

        async_to_sync(router.add_user)(ALICE, "conn1")
        async_to_sync(router.add_user)(BOB, "conn2")

        rosters = server.events(EVENT_GET_USERS)
        assert len(rosters) == 2
        last, to = rosters[-1]
        assert to is None
        assert last == [
            {"userId": ALICE, "socketId": "conn1"},
            {"userId": BOB, "socketId": "conn2"},
        ]

    def test_duplicate_add_user_still_broadcasts(self):
        router, server = make_router()
        async_to_sync(router.add_user)(ALICE, "conn1")

        added = async_to_sync(router.add_user)(ALICE, "conn9")

        assert added is False
        roster, _ = server.events(EVENT_GET_USERS)[-1]
        assert roster == [{"userId": ALICE, "socketId": "conn1"}]

    def test_disconnect_removes_user_and_broadcasts(self, online):
        router, server = online

        record = async_to_sync(router.disconnect)("conn1")

        assert record.user_id == ALICE
        roster, _ = server.events(EVENT_GET_USERS)[-1]
        assert roster == [{"userId": BOB, "socketId": "conn2"}]

    def test_disconnect_of_unknown_connection_still_broadcasts(self, online):
        router, server = online

        assert async_to_sync(router.disconnect)("ghost") is None

        roster, _ = server.events(EVENT_GET_USERS)[-1]
        assert len(roster) == 2


class TestSendMessage:
    def test_unicast_to_receiver_only(self, online):
        router, server = online

        sent = async_to_sync(router.send_message)(
            sender_id=ALICE,
            receiver_id=BOB,
            chat_id="c1",
            content="hi",
        )

        assert sent is True
        assert server.received_by("conn1") == []
        received = server.received_by("conn2")
        assert len(received) == 1
        event, payload = received[0]
        assert event == EVENT_GET_MESSAGE
        assert payload["senderId"] == ALICE
        assert payload["content"] == "hi"
        assert payload["chatId"] == "c1"
        assert payload["createdAt"]

    def test_offline_receiver_gets_nothing(self, online):
        router, server = online

        sent = async_to_sync(router.send_message)(
            sender_id=ALICE,
            receiver_id=CAROL,
            chat_id="c1",
            content="anyone?",
        )

        assert sent is False
        assert server.emitted == []


class TestTyping:
    def test_typing_reaches_everyone_but_sender(self, online):
        router, server = online
        async_to_sync(router.add_user)(CAROL, "conn3")
        server.reset()

        count = async_to_sync(router.typing)(ALICE, "c1")

        assert count == 2
        assert server.received_by("conn1") == []
        expected = (EVENT_USER_TYPING, {"chatId": "c1", "userId": ALICE})
        assert server.received_by("conn2") == [expected]
        assert server.received_by("conn3") == [expected]

    def test_stop_typing(self, online):
        router, server = online

        async_to_sync(router.stop_typing)(BOB, 5)

        assert server.received_by("conn1") == [
            (EVENT_USER_STOPPED_TYPING, {"chatId": 5, "userId": BOB}),
        ]
        assert server.received_by("conn2") == []

    def test_lonely_sender_emits_nothing(self):
        router, server = make_router()
        async_to_sync(router.add_user)(ALICE, "conn1")
        server.reset()

        assert async_to_sync(router.typing)(ALICE, "c1") == 0
        assert server.emitted == []

    def test_participant_filter(self):
        router, server = make_router(participants={"c1": {ALICE, BOB}})
        for user_id, conn in ((ALICE, "conn1"), (BOB, "conn2"), (CAROL, "conn3")):
            async_to_sync(router.add_user)(user_id, conn)
        server.reset()

        async_to_sync(router.typing)(ALICE, "c1")

        assert [to for _, to in server.events(EVENT_USER_TYPING)] == ["conn2"]

    def test_unknown_chat_reaches_nobody(self):
        router, server = make_router(participants={})
        async_to_sync(router.add_user)(ALICE, "conn1")
        async_to_sync(router.add_user)(BOB, "conn2")
        server.reset()

        assert async_to_sync(router.typing)(ALICE, "missing") == 0
        assert server.emitted == []


class TestMarkAsRead:
    def test_read_receipt_payload(self, online):
        router, server = online

        count = async_to_sync(router.mark_as_read)(BOB, "c1", [10, 11])

        assert count == 1
        assert server.received_by("conn1") == [
            (
                EVENT_MESSAGES_READ,
                {"chatId": "c1", "userId": BOB, "messageIds": [10, 11]},
            ),
        ]
