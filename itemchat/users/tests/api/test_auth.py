import pytest
from rest_framework import status
from rest_framework.test import APIClient

from itemchat.audit.models import AuditLog
from itemchat.users.models import User
from tests.factories import TEST_PASSWORD

pytestmark = pytest.mark.django_db

REGISTER_URL = "/api/v1/auth/register/"
LOGIN_URL = "/api/v1/auth/login/"
PROFILE_URL = "/api/v1/auth/profile/"


class TestRegister:
    def test_register_returns_tokens(self):
        client = APIClient()
        r = client.post(
            REGISTER_URL,
            {"username": "dave", "email": "Dave@Example.com", "password": TEST_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_201_CREATED, r.content
        assert r.data["username"] == "dave"
        assert r.data["email"] == "dave@example.com"
        assert r.data["access"]
        assert r.data["refresh"]
        user = User.objects.get(username="dave")
        assert user.check_password(TEST_PASSWORD)
        assert AuditLog.objects.filter(
            action=AuditLog.Action.USER_REGISTERED,
            actor=user,
        ).exists()

    def test_duplicate_email_rejected(self, user):
        r = APIClient().post(
            REGISTER_URL,
            {"username": "someone", "email": user.email.upper(), "password": TEST_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "User already exists" in str(r.data)

    def test_duplicate_username_rejected(self, user):
        r = APIClient().post(
            REGISTER_URL,
            {"username": user.username, "email": "new@example.com", "password": TEST_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST

    def test_weak_password_rejected(self):
        r = APIClient().post(
            REGISTER_URL,
            {"username": "erin", "email": "erin@example.com", "password": "123"},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "password" in r.data
        assert not User.objects.filter(username="erin").exists()

    def test_missing_fields(self):
        r = APIClient().post(REGISTER_URL, {}, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert set(r.data) >= {"username", "email", "password"}


class TestLogin:
    def test_login_with_email(self, user):
        r = APIClient().post(
            LOGIN_URL,
            {"email": user.email, "password": TEST_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_200_OK, r.content
        assert r.data["id"] == user.id
        assert r.data["access"]
        user.refresh_from_db()
        assert user.last_login is not None
        assert AuditLog.objects.filter(action=AuditLog.Action.LOGIN, actor=user).exists()

    def test_wrong_password(self, user):
        r = APIClient().post(
            LOGIN_URL,
            {"email": user.email, "password": "nope-nope"},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid credentials" in str(r.data)
        failed = AuditLog.objects.get(action=AuditLog.Action.LOGIN_FAILED)
        assert user.email in failed.message
        assert failed.actor is None

    def test_unknown_email_same_message(self):
        r = APIClient().post(
            LOGIN_URL,
            {"email": "ghost@example.com", "password": TEST_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "Invalid credentials" in str(r.data)

    def test_issued_access_token_authenticates(self, user):
        client = APIClient()
        r = client.post(
            LOGIN_URL,
            {"email": user.email, "password": TEST_PASSWORD},
            format="json",
        )
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
        profile = client.get(PROFILE_URL)
        assert profile.status_code == status.HTTP_200_OK
        assert profile.data == {"id": user.id, "username": user.username, "email": user.email}


def test_profile_requires_auth():
    r = APIClient().get(PROFILE_URL)
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
