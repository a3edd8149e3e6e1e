"""Socket.IO server for the chat frontend.

The web client uses `socket.io-client` with:
- server URL: ws://<host>:8000
- `path`: settings.SOCKETIO_PATH (default /socket.io/)
- `auth.token` (or `query.token`): JWT access token

Presence lives in one ConnectionRegistry owned by the module-level
``gateway``. Only the connect/addUser/disconnect handlers write it.
"""

from __future__ import annotations

import logging
from typing import Any

import socketio
from socketio import exceptions as sio_exceptions
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from django.conf import settings

from itemchat.chats.services import chat_participant_ids

from .auth import SERVER_ERROR
from .auth import TOKEN_MISSING
from .auth import HandshakeRejected
from .auth import extract_token
from .auth import resolve_user_context
from .payloads import ReadReceiptPayload
from .payloads import SendMessagePayload
from .payloads import TypingPayload
from .payloads import validate_payload
from .registry import ConnectionRegistry
from .router import EventRouter

logger = logging.getLogger(__name__)


def _cors_origins() -> str | list[str]:
    origins = list(getattr(settings, "SOCKETIO_CORS_ALLOWED_ORIGINS", ["*"]))
    return "*" if origins == ["*"] else origins


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=_cors_origins(),
    logger=False,
    engineio_logger=False,
)


class ChatGateway:
    """Binds Socket.IO events to the chat router.

    The gateway owns the connection registry. The authenticated identity saved
    in the session at handshake time is the only source of the acting user;
    user ids sent inside payloads are checked against it and otherwise ignored.
    """

    def __init__(
        self,
        server: socketio.AsyncServer,
        *,
        registry: ConnectionRegistry | None = None,
        participant_resolver=None,
        context_resolver=None,
    ) -> None:
        self.server = server
        self.context_resolver = (
            context_resolver
            if context_resolver is not None
            else database_sync_to_async(resolve_user_context)
        )
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.router = EventRouter(
            server,
            self.registry,
            participant_resolver=participant_resolver,
        )

    def attach(self) -> None:
        self.server.on("connect", self.connect)
        self.server.on("disconnect", self.disconnect)
        self.server.on("addUser", self.add_user)
        self.server.on("sendMessage", self.send_message)
        self.server.on("typing", self.typing)
        self.server.on("stopTyping", self.stop_typing)
        self.server.on("markAsRead", self.mark_as_read)

    # Lifecycle -----------------------------------------------------------------
    async def connect(self, sid: str, environ: dict[str, Any], auth: Any | None = None):
        token = extract_token(environ, auth)
        if not token:
            raise sio_exceptions.ConnectionRefusedError(TOKEN_MISSING)

        try:
            ctx = await self.context_resolver(token)
        except HandshakeRejected as exc:
            logger.info("Socket.IO handshake refused for %s: %s", sid, exc.reason)
            raise sio_exceptions.ConnectionRefusedError(exc.reason) from exc
        except Exception as exc:
            logger.exception("Socket.IO connect error")
            raise sio_exceptions.ConnectionRefusedError(SERVER_ERROR) from exc

        await self.server.save_session(sid, ctx.as_session())
        logger.info("User %s connected: %s", ctx.user_id, sid)

    async def disconnect(self, sid: str, reason: Any = None):
        logger.info("Connection closed: %s (%s)", sid, reason)
        await self.router.disconnect(sid)

    # Events --------------------------------------------------------------------
    async def add_user(self, sid: str, data: Any = None):
        user_id = await self._session_user_id(sid)
        if user_id is None:
            return
        claimed = data.get("userId") if isinstance(data, dict) else data
        if claimed not in (None, "") and str(claimed) != str(user_id):
            logger.warning(
                "addUser on %s claimed user %s but session is user %s",
                sid,
                claimed,
                user_id,
            )
        await self.router.add_user(user_id, sid)

    async def send_message(self, sid: str, data: Any = None):
        user_id = await self._session_user_id(sid)
        payload = self._validated(sid, "sendMessage", SendMessagePayload, data)
        if user_id is None or payload is None:
            return
        self._check_claim(sid, "sendMessage", payload.get("senderId"), user_id)
        await self.router.send_message(
            sender_id=user_id,
            receiver_id=payload["receiverId"],
            chat_id=payload["chatId"],
            content=payload["content"],
        )

    async def typing(self, sid: str, data: Any = None):
        user_id = await self._session_user_id(sid)
        payload = self._validated(sid, "typing", TypingPayload, data)
        if user_id is None or payload is None:
            return
        self._check_claim(sid, "typing", payload.get("userId"), user_id)
        await self.router.typing(user_id, payload["chatId"])

    async def stop_typing(self, sid: str, data: Any = None):
        user_id = await self._session_user_id(sid)
        payload = self._validated(sid, "stopTyping", TypingPayload, data)
        if user_id is None or payload is None:
            return
        self._check_claim(sid, "stopTyping", payload.get("userId"), user_id)
        await self.router.stop_typing(user_id, payload["chatId"])

    async def mark_as_read(self, sid: str, data: Any = None):
        user_id = await self._session_user_id(sid)
        payload = self._validated(sid, "markAsRead", ReadReceiptPayload, data)
        if user_id is None or payload is None:
            return
        self._check_claim(sid, "markAsRead", payload.get("userId"), user_id)
        await self.router.mark_as_read(user_id, payload["chatId"], payload["messageIds"])

    # Helpers -------------------------------------------------------------------
    async def _session_user_id(self, sid: str) -> int | None:
        session = await self.server.get_session(sid)
        user_id = session.get("user_id") if isinstance(session, dict) else None
        if user_id is None:
            logger.warning("Event from %s without an authenticated session", sid)
        return user_id

    @staticmethod
    def _validated(sid: str, event: str, serializer_class, data: Any):
        payload, errors = validate_payload(serializer_class, data)
        if errors is not None:
            logger.warning("Dropping malformed %s from %s: %s", event, sid, errors)
        return payload

    @staticmethod
    def _check_claim(sid: str, event: str, claimed: Any, user_id: int) -> None:
        if claimed is not None and claimed != user_id:
            logger.warning(
                "%s on %s claimed user %s but session is user %s",
                event,
                sid,
                claimed,
                user_id,
            )


gateway = ChatGateway(
    sio,
    registry=ConnectionRegistry(
        replace_stale=getattr(settings, "REALTIME_REPLACE_STALE_CONNECTION", False),
    ),
    participant_resolver=database_sync_to_async(chat_participant_ids),
)
gateway.attach()


def emit_event_to_connection(connection_id: str, event: str, payload: Any) -> None:
    """Emit an event to one connection from sync Django code."""

    async_to_sync(sio.emit)(event, payload, to=connection_id)


def emit_event_to_user(user_id: int, event: str, payload: Any) -> bool:
    """Emit to ``user_id`` if registered. Returns whether an emit happened.

    Safe to call from sync Django code (signals, views). If the user is not
    connected this is a no-op.
    """

    record = gateway.registry.lookup(user_id)
    if record is None:
        return False
    emit_event_to_connection(record.connection_id, event, payload)
    return True
