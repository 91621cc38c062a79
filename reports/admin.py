# reports/admin.py

from django.contrib import admin

from reports.models import ExportManifest


@admin.register(ExportManifest)
class ExportManifestAdmin(admin.ModelAdmin):
    list_display = ("timestamp_utc", "export_type", "format", "record_count", "actor_email", "business")
    list_filter = ("export_type", "format")
    search_fields = ("actor_email", "integrity_hash")
    readonly_fields = [f.name for f in ExportManifest._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
