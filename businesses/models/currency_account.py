# businesses/models/currency_account.py

import uuid

from django.db import models

from .business import Business


class CurrencyAccount(models.Model):
    """
    Sub-ledger of a business scoped to ONE currency.

    Invoices, expenses and receipts are partitioned by currency account;
    reports never mix two accounts' rows.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="currency_accounts",
    )
    currency = models.CharField(max_length=3)
    name = models.CharField(max_length=100, blank=True, default="")
    is_default = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-is_default", "currency"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "currency"],
                name="uniq_currency_account_per_business",
            )
        ]

    def save(self, *args, **kwargs):
        self.currency = (self.currency or "").strip().upper()
        if not self.name:
            self.name = f"{self.currency} Account"
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.business_id} | {self.currency}"
