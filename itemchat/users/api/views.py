from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from drf_spectacular.utils import extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.mixins import ListModelMixin
from rest_framework.mixins import RetrieveModelMixin
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from itemchat.users.models import User

from .serializers import UserSerializer


@extend_schema_view(
    list=extend_schema(tags=["Users"]),
    retrieve=extend_schema(tags=["Users"]),
)
class UserViewSet(RetrieveModelMixin, ListModelMixin, GenericViewSet):
    serializer_class = UserSerializer
    queryset = User.objects.all()
    lookup_field = "username"
    # Plain list (no pagination) for /api/v1/users/
    pagination_class = None

    def get_queryset(self, *args, **kwargs):  # type: ignore[override]
        user = self.request.user
        if not getattr(user, "is_authenticated", False):  # pragma: no cover - safety
            return User.objects.none()
        # Staff may list all users; others only themselves
        if getattr(user, "is_staff", False):
            return User.objects.all()
        return User.objects.filter(pk=user.pk)

    @extend_schema(tags=["Users"])
    @action(detail=False)
    def me(self, request):
        serializer = UserSerializer(request.user, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)

    @extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter("search", OpenApiTypes.STR, required=True),
        ],
        responses={200: UserSerializer(many=True)},
    )
    @action(detail=False)
    def search(self, request):
        """Find other users whose username contains ``search`` (case-insensitive)."""
        term = (request.query_params.get("search") or "").strip()
        if not term:
            return Response(
                {"detail": "Search query is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        qs = User.objects.filter(username__icontains=term).exclude(pk=request.user.pk)
        serializer = UserSerializer(qs, many=True, context={"request": request})
        return Response(status=status.HTTP_200_OK, data=serializer.data)
