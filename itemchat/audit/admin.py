from django.contrib import admin

from itemchat.audit import models


@admin.register(models.AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ["id", "created_at", "action", "actor", "model_name", "record_id"]
    search_fields = ["message", "model_name", "ip_address", "actor__username"]
    list_filter = ["action", "created_at"]
    readonly_fields = [f.name for f in models.AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False
