from decimal import Decimal

from rest_framework import serializers

from itemchat.items.models import Item


class ItemSerializer(serializers.ModelSerializer):
    name = serializers.CharField(
        max_length=50,
        error_messages={
            "required": "Please add a name",
            "blank": "Please add a name",
            "max_length": "Name cannot be more than 50 characters",
        },
    )
    description = serializers.CharField(
        max_length=500,
        error_messages={
            "required": "Please add a description",
            "blank": "Please add a description",
            "max_length": "Description cannot be more than 500 characters",
        },
    )
    price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0"),
        error_messages={
            "required": "Please add a price",
            "min_value": "Price must be at least 0",
        },
    )
    quantity = serializers.IntegerField(
        min_value=0,
        required=False,
        default=0,
        error_messages={"min_value": "Quantity must be at least 0"},
    )

    class Meta:
        model = Item
        fields = [
            "id",
            "name",
            "description",
            "price",
            "quantity",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


def item_snapshot(item: Item) -> dict:
    """JSON-safe view of an item for the audit trail."""
    return {
        "name": item.name,
        "description": item.description,
        "price": str(item.price),
        "quantity": item.quantity,
    }
