from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class AuditLog(models.Model):
    """Append-only trail of account and catalogue changes."""

    class Action(models.TextChoices):
        LOGIN = "login", _("Login")
        LOGIN_FAILED = "login_failed", _("Login failed")
        USER_REGISTERED = "user_registered", _("User registered")
        ITEM_CREATED = "item_created", _("Item created")
        ITEM_UPDATED = "item_updated", _("Item updated")
        ITEM_DELETED = "item_deleted", _("Item deleted")

    action = models.CharField(max_length=50, choices=Action.choices, db_index=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    message = models.TextField(blank=True)
    # "<app_label>.<Model>" of the touched record, if any
    model_name = models.CharField(max_length=150, blank=True)
    record_id = models.BigIntegerField(null=True, blank=True)
    before = models.JSONField(null=True, blank=True)
    after = models.JSONField(null=True, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        who = self.actor_id or "anonymous"
        return f"{self.get_action_display()} by {who} at {self.created_at:%Y-%m-%d %H:%M}"
