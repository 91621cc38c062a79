# audit/admin.py

from django.contrib import admin

from audit.models import AuditLog, RetentionPolicy


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp_utc", "event_type", "entity_type", "entity_id", "actor", "business")
    list_filter = ("event_type", "entity_type")
    search_fields = ("entity_id", "actor__email", "business__name")
    date_hierarchy = "timestamp_utc"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(RetentionPolicy)
class RetentionPolicyAdmin(admin.ModelAdmin):
    list_display = ("jurisdiction", "entity_type", "retention_years", "legal_basis")
    list_filter = ("jurisdiction",)
