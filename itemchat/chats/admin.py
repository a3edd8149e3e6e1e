from django.contrib import admin

from itemchat.chats import models


@admin.register(models.Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ["id", "created_at", "updated_at"]
    filter_horizontal = ["participants"]


@admin.register(models.Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "chat", "sender", "content", "created_at"]
    search_fields = ["content", "sender__username"]
    list_filter = ["created_at"]
    raw_id_fields = ["chat", "sender"]
