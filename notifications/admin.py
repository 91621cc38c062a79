# notifications/admin.py

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "user", "business", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "user__email")
