from __future__ import annotations

from rest_framework import serializers
from rest_framework.fields import empty

from itemchat.chats.models import Chat
from itemchat.chats.models import Message
from itemchat.users.api.serializers import UserSerializer


class MessageSerializer(serializers.ModelSerializer):
    sender = UserSerializer(read_only=True)
    read_by = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Message
        fields = (
            "id",
            "chat",
            "sender",
            "content",
            "read_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer):
    participants = UserSerializer(many=True, read_only=True)

    class Meta:
        model = Chat
        fields = ("id", "participants", "created_at", "updated_at")
        read_only_fields = fields


class ChatSummarySerializer(ChatSerializer):
    """Chat list entry: the chat plus its newest message and unread counter.

    Needs ``request`` in the context to count unread messages for the caller.
    """

    last_message = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta(ChatSerializer.Meta):
        fields = (*ChatSerializer.Meta.fields, "last_message", "unread_count")
        read_only_fields = fields

    def get_last_message(self, obj: Chat) -> dict | None:
        last = (
            obj.messages.select_related("sender")
            .order_by("-created_at", "-id")
            .first()
        )
        if last is None:
            return None
        return MessageSerializer(last, context=self.context).data

    def get_unread_count(self, obj: Chat) -> int:
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None:
            return 0
        return Message.objects.filter(chat=obj).unread_for(user).count()


class ChatCreateSerializer(serializers.Serializer):
    participants = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
    )


class SendMessageSerializer(serializers.Serializer):
    """Payload for posting a message.

    Either ``chat_id`` (existing chat) or ``receiver_id`` (1:1 chat, created on
    demand) is required; ``chat_id`` wins when both are sent.
    """

    content = serializers.CharField()
    chat_id = serializers.IntegerField(required=False, min_value=1)
    receiver_id = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):
        if "chat_id" not in attrs and "receiver_id" not in attrs:
            msg = "Chat ID or receiver ID is required"
            raise serializers.ValidationError(msg)
        return attrs


class MessagePageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=100,
        default=20,
    )

    def page_and_limit(self) -> tuple[int, int]:
        """Validated ``page`` and ``limit``; an invalid one falls back on its own."""
        if self.is_valid():
            return self.validated_data["page"], self.validated_data["limit"]
        values = {}
        for name in ("page", "limit"):
            field = self.fields[name]
            if name in self.errors:
                values[name] = field.default
            else:
                values[name] = field.run_validation(self.initial_data.get(name, empty))
        return values["page"], values["limit"]
