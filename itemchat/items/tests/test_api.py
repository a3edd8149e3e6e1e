from decimal import Decimal

import pytest
from rest_framework import status

from itemchat.audit.models import AuditLog
from itemchat.items.models import Item

pytestmark = pytest.mark.django_db

LIST_URL = "/api/v1/items/"


def detail_url(pk) -> str:
    return f"{LIST_URL}{pk}/"


@pytest.fixture
def item() -> Item:
    return Item.objects.create(
        name="Widget",
        description="A useful widget",
        price=Decimal("9.99"),
        quantity=3,
    )


class TestRead:
    def test_list_is_public_and_newest_first(self, api_client, item):
        newer = Item.objects.create(name="Gadget", description="Shiny", price=1)

        r = api_client.get(LIST_URL)

        assert r.status_code == status.HTTP_200_OK
        assert [row["id"] for row in r.data] == [newer.id, item.id]

    def test_retrieve(self, api_client, item):
        r = api_client.get(detail_url(item.id))
        assert r.status_code == status.HTTP_200_OK
        assert r.data["name"] == "Widget"
        assert r.data["price"] == "9.99"
        assert r.data["quantity"] == 3

    def test_missing_item(self, api_client):
        r = api_client.get(detail_url(999))
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.data["detail"] == "Item not found"


class TestWrite:
    payload = {"name": "Lamp", "description": "Desk lamp", "price": "19.50"}

    def test_create_requires_auth(self, api_client):
        r = api_client.post(LIST_URL, self.payload, format="json")
        assert r.status_code == status.HTTP_401_UNAUTHORIZED
        assert not Item.objects.exists()

    def test_create(self, auth_client, user):
        r = auth_client.post(LIST_URL, self.payload, format="json")

        assert r.status_code == status.HTTP_201_CREATED, r.content
        assert r.data["quantity"] == 0
        created = Item.objects.get(pk=r.data["id"])
        assert created.price == Decimal("19.50")
        entry = AuditLog.objects.get(action=AuditLog.Action.ITEM_CREATED)
        assert entry.actor == user
        assert entry.record_id == created.id
        assert entry.after["name"] == "Lamp"

    @pytest.mark.parametrize(
        ("field", "value", "message"),
        [
            ("name", "", "Please add a name"),
            ("name", "x" * 51, "Name cannot be more than 50 characters"),
            ("description", "", "Please add a description"),
            ("price", "-1", "Price must be at least 0"),
        ],
    )
    def test_validation_messages(self, auth_client, field, value, message):
        r = auth_client.post(LIST_URL, {**self.payload, field: value}, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data[field] == [message]

    def test_missing_price(self, auth_client):
        payload = {"name": "Lamp", "description": "Desk lamp"}
        r = auth_client.post(LIST_URL, payload, format="json")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["price"] == ["Please add a price"]

    def test_put_updates_only_given_fields(self, auth_client, item):
        r = auth_client.put(detail_url(item.id), {"price": "12.00"}, format="json")

        assert r.status_code == status.HTTP_200_OK, r.content
        item.refresh_from_db()
        assert item.price == Decimal("12.00")
        assert item.name == "Widget"
        assert item.quantity == 3
        entry = AuditLog.objects.get(action=AuditLog.Action.ITEM_UPDATED)
        assert entry.before["price"] == "9.99"
        assert entry.after["price"] == "12.00"

    def test_update_missing_item(self, auth_client):
        r = auth_client.patch(detail_url(999), {"price": "1"}, format="json")
        assert r.status_code == status.HTTP_404_NOT_FOUND
        assert r.data["detail"] == "Item not found"

    def test_update_requires_auth(self, api_client, item):
        r = api_client.patch(detail_url(item.id), {"price": "1"}, format="json")
        assert r.status_code == status.HTTP_401_UNAUTHORIZED

    def test_delete(self, auth_client, item):
        r = auth_client.delete(detail_url(item.id))

        assert r.status_code == status.HTTP_200_OK
        assert r.data == {"detail": "Item removed"}
        assert not Item.objects.filter(pk=item.id).exists()
        entry = AuditLog.objects.get(action=AuditLog.Action.ITEM_DELETED)
        assert entry.record_id == item.id
        assert entry.before["name"] == "Widget"

    def test_delete_missing_item(self, auth_client):
        r = auth_client.delete(detail_url(999))
        assert r.status_code == status.HTTP_404_NOT_FOUND
