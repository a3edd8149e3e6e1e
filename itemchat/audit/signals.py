from django.contrib.auth.signals import user_logged_in
from django.contrib.auth.signals import user_login_failed
from django.dispatch import receiver

from .models import AuditLog
from .utils import log_action


def _client_meta(request) -> tuple[str, str]:
    if request is None:
        return "", "-"
    return (
        request.META.get("REMOTE_ADDR", ""),
        request.META.get("HTTP_USER_AGENT", "-"),
    )


@receiver(user_logged_in)
def on_user_logged_in(sender, request, user, **kwargs):
    ip, ua = _client_meta(request)
    log_action(AuditLog.Action.LOGIN, actor=user, message=f"ua={ua}", ip_address=ip)


@receiver(user_login_failed)
def on_user_login_failed(sender, credentials, request=None, **kwargs):
    # credentials are already scrubbed of the password by the sender
    ip, ua = _client_meta(request)
    who = credentials.get("email") or credentials.get("username") or "-"
    log_action(
        AuditLog.Action.LOGIN_FAILED,
        message=f"identifier={who} ua={ua}",
        ip_address=ip,
    )
