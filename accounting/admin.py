# accounting/admin.py

from django.contrib import admin

from accounting.models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = (
        "expense_date",
        "business",
        "category",
        "vendor",
        "amount",
        "currency",
        "created_at",
    )
    list_filter = ("category", "currency")
    search_fields = ("vendor", "description", "business__name")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-expense_date",)
