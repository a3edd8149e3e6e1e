from django.http import Http404
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import permissions
from rest_framework import status
from rest_framework import viewsets
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from itemchat.audit.models import AuditLog
from itemchat.audit.utils import log_action
from itemchat.items.api.serializers import ItemSerializer
from itemchat.items.api.serializers import item_snapshot
from itemchat.items.models import Item

ITEM_MODEL_NAME = "items.Item"


@extend_schema_view(
    list=extend_schema(tags=["Items"]),
    retrieve=extend_schema(tags=["Items"]),
    create=extend_schema(tags=["Items"]),
    update=extend_schema(tags=["Items"]),
    partial_update=extend_schema(tags=["Items"]),
    destroy=extend_schema(tags=["Items"]),
)
class ItemViewSet(viewsets.ModelViewSet):
    """Catalogue CRUD. Anyone may read; writes need an authenticated user."""

    queryset = Item.objects.all()
    serializer_class = ItemSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    # Plain list, newest first
    pagination_class = None

    def get_object(self):
        try:
            return super().get_object()
        except Http404 as exc:
            raise NotFound("Item not found") from exc

    def update(self, request, *args, **kwargs):
        # PUT behaves like PATCH: only the supplied fields change.
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    def perform_create(self, serializer):
        item = serializer.save()
        log_action(
            AuditLog.Action.ITEM_CREATED,
            actor=self.request.user,
            model_name=ITEM_MODEL_NAME,
            record_id=item.id,
            after=item_snapshot(item),
        )

    def perform_update(self, serializer):
        before = item_snapshot(serializer.instance)
        item = serializer.save()
        log_action(
            AuditLog.Action.ITEM_UPDATED,
            actor=self.request.user,
            model_name=ITEM_MODEL_NAME,
            record_id=item.id,
            before=before,
            after=item_snapshot(item),
        )

    def destroy(self, request, *args, **kwargs):
        item = self.get_object()
        before = item_snapshot(item)
        item_id = item.id
        item.delete()
        log_action(
            AuditLog.Action.ITEM_DELETED,
            actor=request.user,
            model_name=ITEM_MODEL_NAME,
            record_id=item_id,
            before=before,
        )
        return Response({"detail": "Item removed"}, status=status.HTTP_200_OK)
