from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ChatsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "itemchat.chats"
    verbose_name = _("Chats")

    def ready(self):
        import itemchat.chats.signals  # noqa: F401, PLC0415
