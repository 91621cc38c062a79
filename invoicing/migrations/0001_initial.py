"""
======================================================
PATH: invoicing/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Invoice, InvoiceItem, Payment, Receipt, CreditNote
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _money():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)


def _uuid_pk():
    return models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)


def _user_fk(related_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", _uuid_pk()),
                ("invoice_number", models.CharField(max_length=50)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("issued", "Issued"),
                            ("sent", "Sent"),
                            ("viewed", "Viewed"),
                            ("paid", "Paid"),
                            ("voided", "Voided"),
                            ("credited", "Credited"),
                        ],
                        default="draft",
                        max_length=20,
                    ),
                ),
                ("currency", models.CharField(default="NGN", max_length=3)),
                ("subtotal", _money()),
                ("tax_amount", _money()),
                ("discount_amount", _money()),
                ("total_amount", _money()),
                ("amount_paid", _money()),
                (
                    "exchange_rate_to_primary",
                    models.DecimalField(
                        blank=True,
                        decimal_places=6,
                        help_text="Units of the business's primary currency per 1 unit of this invoice's currency.",
                        max_digits=18,
                        null=True,
                    ),
                ),
                ("issue_date", models.DateField(blank=True, null=True)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("terms", models.TextField(blank=True, default="")),
                ("issued_at", models.DateTimeField(blank=True, null=True)),
                ("invoice_hash", models.CharField(blank=True, default="", max_length=64)),
                ("verification_id", models.UUIDField(blank=True, null=True, unique=True)),
                ("issuer_snapshot", models.JSONField(blank=True, null=True)),
                ("recipient_snapshot", models.JSONField(blank=True, null=True)),
                ("tax_schema_snapshot", models.JSONField(blank=True, null=True)),
                ("tax_schema_version", models.CharField(blank=True, default="", max_length=20)),
                ("retention_locked_until", models.DateField(blank=True, null=True)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="businesses.business",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="businesses.client",
                    ),
                ),
                (
                    "currency_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="businesses.currencyaccount",
                    ),
                ),
                ("issued_by", _user_fk("issued_invoices")),
                ("voided_by", _user_fk("voided_invoices")),
                ("created_by", _user_fk("created_invoices")),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("business", "invoice_number"),
                        name="uniq_invoice_number_per_business",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["business", "status"], name="invoice_business_status_idx"),
                    models.Index(fields=["business", "issued_at"], name="invoice_business_issued_idx"),
                    models.Index(fields=["due_date"], name="invoice_due_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", _uuid_pk()),
                ("description", models.CharField(max_length=500)),
                ("quantity", models.DecimalField(decimal_places=3, default=Decimal("1.000"), max_digits=15)),
                ("unit_price", _money()),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("discount_percent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("tax_amount", _money()),
                ("amount", _money()),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="invoicing.invoice",
                    ),
                ),
            ],
            options={
                "ordering": ["sort_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", _uuid_pk()),
                ("amount", _money()),
                ("payment_method", models.CharField(blank=True, default="", max_length=100)),
                ("payment_reference", models.CharField(blank=True, default="", max_length=255)),
                ("payment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="businesses.business",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="invoicing.invoice",
                    ),
                ),
                ("recorded_by", _user_fk("recorded_payments")),
            ],
            options={
                "ordering": ["-payment_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["business", "payment_date"], name="payment_business_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(amount__gt=0),
                        name="payment_amount_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", _uuid_pk()),
                ("receipt_number", models.CharField(max_length=60)),
                ("amount", _money()),
                ("currency", models.CharField(max_length=3)),
                ("issued_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("receipt_hash", models.CharField(max_length=64)),
                ("verification_id", models.UUIDField(default=uuid.uuid4, unique=True)),
                ("issuer_snapshot", models.JSONField(default=dict)),
                ("payer_snapshot", models.JSONField(default=dict)),
                ("invoice_snapshot", models.JSONField(default=dict)),
                ("payment_snapshot", models.JSONField(default=dict)),
                ("retention_locked_until", models.DateField(blank=True, null=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="businesses.business",
                    ),
                ),
                (
                    "currency_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="businesses.currencyaccount",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipts",
                        to="invoicing.invoice",
                    ),
                ),
                (
                    "payment",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="receipt",
                        to="invoicing.payment",
                    ),
                ),
            ],
            options={
                "ordering": ["-issued_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("business", "receipt_number"),
                        name="uniq_receipt_number_per_business",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CreditNote",
            fields=[
                ("id", _uuid_pk()),
                ("credit_note_number", models.CharField(max_length=60)),
                ("reason", models.TextField()),
                ("amount", _money()),
                ("currency", models.CharField(max_length=3)),
                ("issued_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("credit_note_hash", models.CharField(max_length=64)),
                ("verification_id", models.UUIDField(default=uuid.uuid4, unique=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_notes",
                        to="businesses.business",
                    ),
                ),
                (
                    "original_invoice",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_note",
                        to="invoicing.invoice",
                    ),
                ),
                ("issued_by", _user_fk("issued_credit_notes")),
            ],
            options={
                "ordering": ["-issued_at"],
            },
        ),
    ]
