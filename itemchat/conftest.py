import pytest
from rest_framework.test import APIClient

from itemchat.users.models import User
from tests.factories import TEST_PASSWORD
from tests.factories import create_user


@pytest.fixture
def user(db) -> User:
    return create_user("alice")


@pytest.fixture
def other_user(db) -> User:
    return create_user("bob")


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def auth_client(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD
