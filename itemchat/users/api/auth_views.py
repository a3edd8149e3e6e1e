from django.contrib.auth.signals import user_logged_in
from django.contrib.auth.signals import user_login_failed
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from itemchat.audit.models import AuditLog
from itemchat.audit.utils import log_action

from .serializers import AuthResponseSerializer
from .serializers import LoginSerializer
from .serializers import RegisterSerializer
from .serializers import UserSerializer


def _client_ip(request) -> str:
    return request.META.get("REMOTE_ADDR", "") if request else ""


@extend_schema(
    tags=["Authentication"],
    request=RegisterSerializer,
    responses={201: AuthResponseSerializer},
)
class RegisterView(APIView):
    """Create an account and return a JWT pair for it."""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        log_action(
            AuditLog.Action.USER_REGISTERED,
            actor=user,
            message=f"username={user.username}",
            model_name="users.User",
            record_id=user.id,
            ip_address=_client_ip(request),
        )
        return Response(
            AuthResponseSerializer.for_user(user),
            status=status.HTTP_201_CREATED,
        )


@extend_schema(
    tags=["Authentication"],
    request=LoginSerializer,
    responses={200: AuthResponseSerializer},
)
class LoginView(APIView):
    """Email/password login returning a JWT pair in the JSON body."""

    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            user_login_failed.send(
                sender=__name__,
                credentials={"email": str(request.data.get("email", ""))},
                request=request,
            )
            # Raising here would roll back the login_failed audit row.
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.validated_data["user"]
        # Updates last_login and feeds the audit trail.
        user_logged_in.send(sender=user.__class__, request=request, user=user)
        return Response(AuthResponseSerializer.for_user(user), status=status.HTTP_200_OK)


@extend_schema(tags=["Authentication"], responses={200: UserSerializer})
class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)
