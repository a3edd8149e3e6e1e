from datetime import timedelta

import pytest
from django.contrib.auth.models import AnonymousUser
from django.utils import timezone
from rest_framework import status

from itemchat.audit.models import AuditLog
from itemchat.audit.utils import log_action
from tests.factories import create_user

pytestmark = pytest.mark.django_db

RECENT_URL = "/api/v1/audit/recent/"


@pytest.fixture
def staff_client(api_client):
    api_client.force_authenticate(user=create_user("admin", is_staff=True))
    return api_client


def _seed(count: int) -> list[AuditLog]:
    base = timezone.now()
    rows = [
        log_action(AuditLog.Action.ITEM_CREATED, message=str(i), record_id=i)
        for i in range(count)
    ]
    # Deterministic timestamps so newest-first ordering is stable.
    for i, row in enumerate(rows):
        AuditLog.objects.filter(pk=row.pk).update(
            created_at=base + timedelta(seconds=i),
        )
    return rows


def test_recent_requires_staff(auth_client):
    r = auth_client.get(RECENT_URL)
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_recent_requires_auth(api_client):
    r = api_client.get(RECENT_URL)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_recent_returns_latest_5(staff_client):
    _seed(6)

    r = staff_client.get(RECENT_URL)

    assert r.status_code == status.HTTP_200_OK
    assert r.data["limit"] == 5
    assert [row["message"] for row in r.data["results"]] == ["5", "4", "3", "2", "1"]
    assert r.data["results"][0]["action_display"] == "Item created"


@pytest.mark.parametrize(
    ("limit", "expected"),
    [("2", 2), ("0", 1), ("500", 50), ("junk", 5)],
)
def test_recent_limit_is_clamped(staff_client, limit, expected):
    r = staff_client.get(RECENT_URL, {"limit": limit})
    assert r.data["limit"] == expected


def test_log_action_ignores_anonymous_actor():
    entry = log_action(AuditLog.Action.LOGIN_FAILED, actor=AnonymousUser())
    assert entry.actor is None


def test_log_action_keeps_real_actor(user):
    entry = log_action(AuditLog.Action.LOGIN, actor=user, ip_address="10.0.0.1")
    assert entry.actor == user
    assert list(user.audit_entries.all()) == [entry]
