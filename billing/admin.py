# billing/admin.py

from django.contrib import admin

from billing.models import Subscription, TierLimit


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("business", "tier", "status", "current_period_end", "created_at")
    list_filter = ("tier", "status")
    search_fields = ("business__name",)


@admin.register(TierLimit)
class TierLimitAdmin(admin.ModelAdmin):
    list_display = ("tier", "feature", "limit_type", "limit_value")
    list_filter = ("tier", "limit_type")
    search_fields = ("feature",)
