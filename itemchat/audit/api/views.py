from __future__ import annotations

from typing import TYPE_CHECKING

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from itemchat.audit.api.serializers import AuditLogSerializer
from itemchat.audit.models import AuditLog

if TYPE_CHECKING:
    from django.db.models import QuerySet

DEFAULT_LIMIT = 5
MAX_LIMIT = 50


@extend_schema(tags=["Audit"], responses={200: AuditLogSerializer(many=True)})
class RecentAuditView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        try:
            limit = int(request.query_params.get("limit", DEFAULT_LIMIT))
        except (TypeError, ValueError):
            limit = DEFAULT_LIMIT
        limit = max(1, min(limit, MAX_LIMIT))

        qs: QuerySet[AuditLog] = AuditLog.objects.select_related("actor").all()
        rows = list(qs[:limit])
        data = AuditLogSerializer(rows, many=True).data
        return Response({"results": data, "limit": limit})
