"""Handshake-time authentication for Socket.IO connections.

Clients send a simplejwt access token either as ``auth={"token": ...}`` or as
``?token=...`` on the connection URL. The token is verified (signature and
expiry) and resolved to an active user before the connection is admitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

import jwt
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.exceptions import TokenBackendError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.state import token_backend

# Rejection reasons sent back to the client with the refused connection.
TOKEN_MISSING = "Authentication error: Token not provided"
TOKEN_EXPIRED = "Authentication error: Token expired"
TOKEN_INVALID = "Authentication error: Invalid token"
USER_NOT_FOUND = "Authentication error: User not found"
SERVER_ERROR = "server_error"


class HandshakeRejected(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class UserRealtimeContext:
    user_id: int
    username: str

    def as_session(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "username": self.username}


def _is_expired(token: str) -> bool:
    """True if ``token`` is correctly signed and only its expiry check fails."""
    try:
        token_backend.decode(token, verify=True)
    except TokenBackendError as exc:
        cause = exc.__cause__ or exc.__context__
        return isinstance(cause, jwt.ExpiredSignatureError)
    return False


def resolve_user_context(token: str) -> UserRealtimeContext:
    """Verify ``token`` and load its user. Raises ``HandshakeRejected``.

    Touches the database; call through ``database_sync_to_async`` from async
    handlers.
    """

    jwt_auth = JWTAuthentication()
    try:
        validated = jwt_auth.get_validated_token(token)
    except (InvalidToken, TokenError) as exc:
        reason = TOKEN_EXPIRED if _is_expired(token) else TOKEN_INVALID
        raise HandshakeRejected(reason) from exc

    try:
        user = jwt_auth.get_user(validated)
    except AuthenticationFailed as exc:  # unknown / inactive user, missing claim
        raise HandshakeRejected(USER_NOT_FOUND) from exc

    return UserRealtimeContext(user_id=int(user.id), username=user.get_username())


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Extract the JWT from the Socket.IO ``auth`` payload or query string.

    Handles python-socketio environ shapes across ASGI/WSGI servers.
    """

    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token.strip():
            return auth_token.strip()

    scope: Any = environ
    if isinstance(environ, dict) and "asgi.scope" in environ:
        inner = environ.get("asgi.scope")
        if isinstance(inner, dict):
            scope = inner

    query_string: str | bytes = ""
    if isinstance(scope, dict) and "query_string" in scope:
        query_string = scope.get("query_string", b"")
    elif isinstance(scope, dict) and "QUERY_STRING" in scope:
        query_string = scope.get("QUERY_STRING", "")

    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token
    return None
