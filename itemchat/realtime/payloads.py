"""Validation of inbound Socket.IO event payloads.

Field names follow the camelCase wire format used by the web client.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers


class IdentifierField(serializers.Field):
    """Accepts an integer or a non-empty string and returns it unchanged."""

    default_error_messages = {
        "invalid": "Expected an integer or a non-empty string.",
    }

    def to_internal_value(self, data: Any) -> int | str:
        if isinstance(data, bool):
            self.fail("invalid")
        if isinstance(data, int):
            return data
        if isinstance(data, str) and data.strip():
            return data.strip()
        self.fail("invalid")
        return None  # pragma: no cover - fail() raises

    def to_representation(self, value: Any) -> int | str:
        return value


class SendMessagePayload(serializers.Serializer):
    senderId = serializers.IntegerField(required=False)  # noqa: N815
    receiverId = serializers.IntegerField()  # noqa: N815
    chatId = IdentifierField()  # noqa: N815
    content = serializers.CharField(trim_whitespace=False)


class TypingPayload(serializers.Serializer):
    chatId = IdentifierField()  # noqa: N815
    userId = serializers.IntegerField(required=False)  # noqa: N815


class ReadReceiptPayload(TypingPayload):
    messageIds = serializers.ListField(  # noqa: N815
        child=IdentifierField(),
        required=False,
        default=list,
    )


def validate_payload(
    serializer_class: type[serializers.Serializer],
    data: Any,
) -> tuple[dict[str, Any] | None, Any]:
    """Return ``(validated_data, None)`` or ``(None, errors)``."""
    if not isinstance(data, dict):
        return None, {"non_field_errors": ["Expected a JSON object."]}
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        return None, serializer.errors
    return dict(serializer.validated_data), None
