# accounting/models/expense.py

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Expense(models.Model):
    """
    Money spent by a business, recorded against ONE currency account.

    exchange_rate_to_primary is frozen at entry time (units of the business's
    primary currency per 1 unit of `currency`); reports never look up live FX.
    """

    CATEGORY_CHOICES = [
        ("office", "Office"),
        ("rent", "Rent"),
        ("utilities", "Utilities"),
        ("salaries", "Salaries"),
        ("travel", "Travel"),
        ("marketing", "Marketing"),
        ("software", "Software"),
        ("professional_services", "Professional services"),
        ("equipment", "Equipment"),
        ("taxes", "Taxes"),
        ("other", "Other"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.PROTECT,
        related_name="expenses",
    )
    currency_account = models.ForeignKey(
        "businesses.CurrencyAccount",
        on_delete=models.PROTECT,
        related_name="expenses",
    )
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_expenses",
    )

    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default="other")
    description = models.CharField(max_length=500, blank=True, default="")
    vendor = models.CharField(max_length=255, blank=True, default="")

    amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    currency = models.CharField(max_length=3)
    exchange_rate_to_primary = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        null=True,
        blank=True,
    )

    expense_date = models.DateField(default=timezone.localdate)
    receipt_url = models.URLField(max_length=500, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-expense_date", "-created_at"]
        indexes = [
            models.Index(fields=["business", "expense_date"], name="expense_business_date_idx"),
            models.Index(fields=["currency_account", "expense_date"], name="expense_account_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="expense_amount_non_negative",
            )
        ]

    def save(self, *args, **kwargs):
        self.currency = (self.currency or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Expense {self.amount} {self.currency} ({self.expense_date})"
