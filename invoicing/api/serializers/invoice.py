# invoicing/api/serializers/invoice.py

from decimal import Decimal

from rest_framework import serializers

from invoicing.models import Invoice, InvoiceItem


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "description",
            "quantity",
            "unit_price",
            "tax_rate",
            "discount_percent",
            "tax_amount",
            "amount",
            "sort_order",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """
    Read serializer (lists, detail, command responses).
    """

    items = InvoiceItemSerializer(many=True, read_only=True)
    client_name = serializers.SerializerMethodField()
    balance_due = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "business",
            "currency_account",
            "client",
            "client_name",
            "invoice_number",
            "status",
            "currency",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "amount_paid",
            "balance_due",
            "exchange_rate_to_primary",
            "issue_date",
            "due_date",
            "is_overdue",
            "notes",
            "terms",
            "issued_at",
            "issued_by",
            "invoice_hash",
            "verification_id",
            "issuer_snapshot",
            "recipient_snapshot",
            "tax_schema_snapshot",
            "tax_schema_version",
            "retention_locked_until",
            "voided_at",
            "voided_by",
            "void_reason",
            "created_by",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields

    def get_client_name(self, obj):
        snapshot = obj.recipient_snapshot or {}
        if snapshot.get("name"):
            return snapshot["name"]
        client = getattr(obj, "client", None)
        return getattr(client, "name", None)


# ==========================================================
# INPUT
# ==========================================================


class InvoiceItemInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500)
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, default=Decimal("1"))
    unit_price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=0)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"), min_value=0, max_value=100)
    discount_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0"), min_value=0, max_value=100
    )
    sort_order = serializers.IntegerField(required=False, min_value=0)


class InvoiceWriteSerializer(serializers.Serializer):
    business = serializers.UUIDField(required=False)
    client = serializers.UUIDField(required=False, allow_null=True)
    currency_account = serializers.UUIDField(required=False, allow_null=True)
    issue_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    terms = serializers.CharField(required=False, allow_blank=True, default="")
    exchange_rate_to_primary = serializers.DecimalField(
        max_digits=18, decimal_places=6, required=False, allow_null=True, min_value=0
    )
    items = InvoiceItemInputSerializer(many=True, required=False)


class IssueInvoiceSerializer(serializers.Serializer):
    issue_date = serializers.DateField(required=False, allow_null=True)


class VoidInvoiceSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", trim_whitespace=True)


class SendInvoiceSerializer(serializers.Serializer):
    recipient_email = serializers.CharField(required=False, allow_blank=True, default="")
    custom_message = serializers.CharField(required=False, allow_blank=True, default="", max_length=5000)
