from django.contrib import admin

from itemchat.items import models


@admin.register(models.Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "price", "quantity", "updated_at"]
    search_fields = ["name", "description"]
    list_filter = ["created_at"]
