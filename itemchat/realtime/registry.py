"""In-memory table of which user is reachable on which Socket.IO connection."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionRecord:
    user_id: int
    connection_id: str

    def as_payload(self) -> dict[str, Any]:
        """Wire shape used by the ``getUsers`` roster event."""
        return {"userId": self.user_id, "socketId": self.connection_id}


class ConnectionRegistry:
    """Maps a user to its single live connection.

    By default the first registered connection of a user wins: a second
    ``register`` for the same user is a no-op until the first connection is
    unregistered. With ``replace_stale=True`` a later ``register`` rebinds the
    user to the new connection instead.

    A connection id is never bound to two users at once. Iteration order of
    ``snapshot`` is registration order.
    """

    def __init__(self, *, replace_stale: bool = False) -> None:
        self.replace_stale = replace_stale
        self._by_user: dict[int, ConnectionRecord] = {}
        self._by_connection: dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, connection_id: str) -> bool:
        """Bind ``user_id`` to ``connection_id``; return whether anything changed."""
        with self._lock:
            owner = self._by_connection.get(connection_id)
            if owner is not None and owner != user_id:
                logger.warning(
                    "Connection %s already bound to user %s; refusing user %s",
                    connection_id,
                    owner,
                    user_id,
                )
                return False

            current = self._by_user.get(user_id)
            if current is not None:
                if current.connection_id == connection_id or not self.replace_stale:
                    return False
                # Drop the stale binding and re-append so roster order
                # reflects the reconnect.
                del self._by_connection[current.connection_id]
                del self._by_user[user_id]
                logger.info(
                    "User %s moved from connection %s to %s",
                    user_id,
                    current.connection_id,
                    connection_id,
                )

            self._by_user[user_id] = ConnectionRecord(user_id, connection_id)
            self._by_connection[connection_id] = user_id
            return True

    def unregister(self, connection_id: str) -> ConnectionRecord | None:
        with self._lock:
            user_id = self._by_connection.pop(connection_id, None)
            if user_id is None:
                return None
            return self._by_user.pop(user_id)

    def lookup(self, user_id: int) -> ConnectionRecord | None:
        with self._lock:
            return self._by_user.get(user_id)

    def snapshot(self) -> list[ConnectionRecord]:
        with self._lock:
            return list(self._by_user.values())

    def clear(self) -> None:
        with self._lock:
            self._by_user.clear()
            self._by_connection.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_user)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._by_user
