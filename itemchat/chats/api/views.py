"""Chats and messages REST endpoints."""

from __future__ import annotations

import logging
import math

from django.contrib.auth import get_user_model
from django.db.transaction import on_commit
from django.http import Http404
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import mixins
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from itemchat.chats.models import Chat
from itemchat.chats.models import Message
from itemchat.realtime.events.chat import publish_messages_read

from .serializers import ChatCreateSerializer
from .serializers import ChatSerializer
from .serializers import ChatSummarySerializer
from .serializers import MessagePageQuerySerializer
from .serializers import MessageSerializer
from .serializers import SendMessageSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


def _get_or_create_direct_chat(user_a_id: int, user_b_id: int) -> Chat:
    ids = {user_a_id, user_b_id}
    chat = Chat.objects.with_exact_participants(ids).first()
    if chat is None:
        chat = Chat.objects.create()
        chat.participants.set(ids)
    return chat


@extend_schema_view(
    list=extend_schema(tags=["Chats"], responses={200: ChatSummarySerializer(many=True)}),
    retrieve=extend_schema(tags=["Chats"]),
)
class ChatViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    GenericViewSet,
):
    """Chats the authenticated user participates in.

    - list: caller's chats, most recently active first, with last message and
      unread counter
    - create: get-or-create the chat with exactly the given participants
    - messages: paginated history of one chat
    - read: mark everything others wrote as read by the caller
    - send_message: post a message by chat id or receiver id
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ChatSerializer
    pagination_class = None
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Chat.objects.none()
        return Chat.objects.for_user(self.request.user).prefetch_related(
            "participants",
        )

    def get_serializer_class(self):
        if self.action == "list":
            return ChatSummarySerializer
        return ChatSerializer

    def get_object(self):
        try:
            return super().get_object()
        except Http404 as exc:
            raise NotFound("Chat not found") from exc

    def _participant_chat(self, pk, denied_message: str) -> Chat:
        chat = Chat.objects.for_user(self.request.user).filter(pk=pk).first()
        if chat is None:
            raise PermissionDenied(denied_message)
        return chat

    @extend_schema(
        tags=["Chats"],
        request=ChatCreateSerializer,
        responses={200: ChatSerializer, 201: ChatSerializer},
    )
    def create(self, request, *args, **kwargs):
        serializer = ChatCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        participant_ids = set(serializer.validated_data["participants"])
        participant_ids.add(request.user.id)

        if User.objects.filter(id__in=participant_ids).count() != len(participant_ids):
            return Response(
                {"detail": "One or more users do not exist"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        existing = Chat.objects.with_exact_participants(participant_ids).first()
        if existing is not None:
            return Response(ChatSerializer(existing).data, status=status.HTTP_200_OK)

        chat = Chat.objects.create()
        chat.participants.set(participant_ids)
        logger.info("Chat %s created for users %s", chat.id, sorted(participant_ids))
        return Response(ChatSerializer(chat).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Chats"],
        parameters=[
            OpenApiParameter("page", OpenApiTypes.INT, required=False),
            OpenApiParameter("limit", OpenApiTypes.INT, required=False),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["get"], url_path="messages", url_name="messages")
    def messages(self, request, pk=None):
        chat = self._participant_chat(pk, "Not authorized to view this chat")

        query = MessagePageQuerySerializer(data=request.query_params)
        page, limit = query.page_and_limit()

        qs = (
            Message.objects.filter(chat=chat)
            .select_related("sender")
            .prefetch_related("read_by")
        )
        total = qs.count()
        offset = (page - 1) * limit
        # Newest page first, but each page reads oldest to newest.
        rows = list(qs.order_by("-created_at", "-id")[offset : offset + limit])
        rows.reverse()

        return Response(
            {
                "messages": MessageSerializer(rows, many=True).data,
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total_pages": math.ceil(total / limit),
                    "total_messages": total,
                },
            },
            status=status.HTTP_200_OK,
        )

    @extend_schema(tags=["Chats"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["put"], url_path="read", url_name="read")
    def read(self, request, pk=None):
        chat = self._participant_chat(pk, "Not authorized to access this chat")
        user = request.user

        unread_ids = list(
            Message.objects.filter(chat=chat)
            .unread_for(user)
            .values_list("id", flat=True),
        )
        through = Message.read_by.through
        through.objects.bulk_create(
            [through(message_id=mid, user_id=user.id) for mid in unread_ids],
            ignore_conflicts=True,
        )

        if unread_ids:
            recipients = chat.participant_ids()
            on_commit(
                lambda: publish_messages_read(
                    chat_id=chat.id,
                    reader_id=user.id,
                    message_ids=unread_ids,
                    participant_ids=recipients,
                ),
            )

        return Response(
            {"detail": "Messages marked as read", "updated_count": len(unread_ids)},
            status=status.HTTP_200_OK,
        )

    @extend_schema(
        tags=["Messages"],
        request=SendMessageSerializer,
        responses={201: MessageSerializer},
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="messages",
        url_name="send-message",
    )
    def send_message(self, request):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = request.user

        chat_id = data.get("chat_id")
        if chat_id is None:
            receiver = User.objects.filter(pk=data["receiver_id"]).first()
            if receiver is None:
                raise NotFound("Receiver not found")
            chat_id = _get_or_create_direct_chat(user.id, receiver.id).id

        chat = self._participant_chat(chat_id, "Not authorized to message in this chat")

        message = Message.objects.create(chat=chat, sender=user, content=data["content"])
        message.read_by.add(user)
        Chat.objects.filter(pk=chat.pk).update(updated_at=timezone.now())

        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)
