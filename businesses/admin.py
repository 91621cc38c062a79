# businesses/admin.py

from django.contrib import admin

from businesses.models import Business, BusinessMember, Client, CurrencyAccount


class BusinessMemberInline(admin.TabularInline):
    model = BusinessMember
    fk_name = "business"
    extra = 0
    fields = ("user", "role", "created_at")
    readonly_fields = ("created_at",)


class CurrencyAccountInline(admin.TabularInline):
    model = CurrencyAccount
    extra = 0
    fields = ("currency", "name", "is_default")


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ("name", "legal_name", "jurisdiction", "default_currency", "created_at")
    list_filter = ("jurisdiction", "default_currency")
    search_fields = ("name", "legal_name", "tax_id")
    readonly_fields = ("next_invoice_number", "next_receipt_number", "created_at", "updated_at")
    inlines = [BusinessMemberInline, CurrencyAccountInline]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ("name", "business", "email", "created_at")
    search_fields = ("name", "email", "business__name")
