from __future__ import annotations

from typing import Any


class FakeServer:
    """Records emits and keeps sessions in memory, like ``socketio.AsyncServer``."""

    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.emitted: list[tuple[str, Any, str | None]] = []
        self.sessions: dict[str, dict[str, Any]] = {}

    def on(self, event: str, handler=None):
        self.handlers[event] = handler
        return handler

    async def emit(self, event: str, data: Any = None, to: str | None = None, **kwargs):
        self.emitted.append((event, data, to))

    async def save_session(self, sid: str, session: dict[str, Any]) -> None:
        self.sessions[sid] = dict(session)

    async def get_session(self, sid: str) -> dict[str, Any]:
        return self.sessions.get(sid, {})

    def events(self, name: str) -> list[tuple[Any, str | None]]:
        return [(data, to) for event, data, to in self.emitted if event == name]

    def received_by(self, connection_id: str) -> list[tuple[str, Any]]:
        return [(event, data) for event, data, to in self.emitted if to == connection_id]

    def reset(self) -> None:
        self.emitted.clear()
