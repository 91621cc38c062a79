# invoicing/admin.py

"""
Issued documents are legal records: the admin is read-only for them.
"""

from django.contrib import admin

from invoicing.models import CreditNote, Invoice, InvoiceItem, Payment, Receipt


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "description",
        "quantity",
        "unit_price",
        "tax_rate",
        "discount_percent",
        "tax_amount",
        "amount",
        "sort_order",
    )


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "business", "status", "total_amount", "currency", "issued_at")
    list_filter = ("status", "currency")
    search_fields = ("invoice_number", "business__name")
    inlines = [InvoiceItemInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_delete_permission(self, request, obj=None):
        return obj is not None and obj.status == Invoice.STATUS_DRAFT


class _ImmutableAdmin(admin.ModelAdmin):
    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(_ImmutableAdmin):
    list_display = ("invoice", "amount", "payment_method", "payment_date")


@admin.register(Receipt)
class ReceiptAdmin(_ImmutableAdmin):
    list_display = ("receipt_number", "business", "amount", "currency", "issued_at")
    search_fields = ("receipt_number",)


@admin.register(CreditNote)
class CreditNoteAdmin(_ImmutableAdmin):
    list_display = ("credit_note_number", "business", "amount", "currency", "issued_at")
    search_fields = ("credit_note_number",)
