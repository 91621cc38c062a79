# invoicing/models/receipt.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone


class Receipt(models.Model):
    """
    Immutable proof of payment. Exactly one per Payment.

    receipt_hash = sha256("receipt_number|invoice_id|payment_id|amount|currency|issued_at")
    (see invoicing.services.hashing.compute_receipt_hash)
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.PROTECT,
        related_name="receipts",
    )
    currency_account = models.ForeignKey(
        "businesses.CurrencyAccount",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="receipts",
    )
    invoice = models.ForeignKey(
        "invoicing.Invoice",
        on_delete=models.PROTECT,
        related_name="receipts",
    )
    payment = models.OneToOneField(
        "invoicing.Payment",
        on_delete=models.PROTECT,
        related_name="receipt",
    )

    receipt_number = models.CharField(max_length=60)
    amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3)

    issued_at = models.DateTimeField(default=timezone.now)
    receipt_hash = models.CharField(max_length=64)
    verification_id = models.UUIDField(default=uuid.uuid4, unique=True)

    issuer_snapshot = models.JSONField(default=dict)
    payer_snapshot = models.JSONField(default=dict)
    invoice_snapshot = models.JSONField(default=dict)
    payment_snapshot = models.JSONField(default=dict)

    retention_locked_until = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["-issued_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "receipt_number"],
                name="uniq_receipt_number_per_business",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Receipts are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Receipts cannot be deleted")

    def __str__(self):
        return f"{self.receipt_number} | {self.amount} {self.currency}"
