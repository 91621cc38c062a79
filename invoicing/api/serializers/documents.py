# invoicing/api/serializers/documents.py

from rest_framework import serializers

from invoicing.models import CreditNote, Receipt


class ReceiptSerializer(serializers.ModelSerializer):
    class Meta:
        model = Receipt
        fields = [
            "id",
            "business",
            "currency_account",
            "invoice",
            "payment",
            "receipt_number",
            "amount",
            "currency",
            "issued_at",
            "receipt_hash",
            "verification_id",
            "issuer_snapshot",
            "payer_snapshot",
            "invoice_snapshot",
            "payment_snapshot",
            "retention_locked_until",
        ]
        read_only_fields = fields


class CreditNoteSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="original_invoice.invoice_number", read_only=True)

    class Meta:
        model = CreditNote
        fields = [
            "id",
            "business",
            "original_invoice",
            "invoice_number",
            "credit_note_number",
            "reason",
            "amount",
            "currency",
            "issued_at",
            "issued_by",
            "credit_note_hash",
            "verification_id",
        ]
        read_only_fields = fields
