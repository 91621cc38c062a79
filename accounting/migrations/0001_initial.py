"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Expense (per currency account)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Expense",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
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
                        ],
                        default="other",
                        max_length=50,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=500)),
                ("vendor", models.CharField(blank=True, default="", max_length=255)),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=15,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("currency", models.CharField(max_length=3)),
                (
                    "exchange_rate_to_primary",
                    models.DecimalField(blank=True, decimal_places=6, max_digits=18, null=True),
                ),
                ("expense_date", models.DateField(default=django.utils.timezone.localdate)),
                ("receipt_url", models.URLField(blank=True, default="", max_length=500)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="expenses",
                        to="businesses.business",
                    ),
                ),
                (
                    "currency_account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="expenses",
                        to="businesses.currencyaccount",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recorded_expenses",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-expense_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["business", "expense_date"], name="expense_business_date_idx"),
                    models.Index(fields=["currency_account", "expense_date"], name="expense_account_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gte=0),
                        name="expense_amount_non_negative",
                    ),
                ],
            },
        ),
    ]
