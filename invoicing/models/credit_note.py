# invoicing/models/credit_note.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class CreditNote(models.Model):
    """
    Reversal document created when an issued invoice is voided.

    The one-to-one key makes a second credit note for the same invoice
    impossible at the database level.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.PROTECT,
        related_name="credit_notes",
    )
    original_invoice = models.OneToOneField(
        "invoicing.Invoice",
        on_delete=models.PROTECT,
        related_name="credit_note",
    )

    credit_note_number = models.CharField(max_length=60)
    reason = models.TextField()
    amount = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3)

    issued_at = models.DateTimeField(default=timezone.now)
    issued_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_credit_notes",
    )

    credit_note_hash = models.CharField(max_length=64)
    verification_id = models.UUIDField(default=uuid.uuid4, unique=True)

    class Meta:
        ordering = ["-issued_at"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Credit notes are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Credit notes cannot be deleted")

    def __str__(self):
        return f"{self.credit_note_number} | {self.amount} {self.currency}"
