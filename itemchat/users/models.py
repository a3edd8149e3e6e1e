from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import EmailField
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    """
    Default custom user model for itemchat.
    Email is the login identifier for the REST auth endpoints, so it is unique.
    """

    email = EmailField(_("email address"), unique=True)
    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta(AbstractUser.Meta):
        ordering = ["username"]

    def __str__(self) -> str:
        return self.username
