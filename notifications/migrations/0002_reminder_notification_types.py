"""
======================================================
PATH: notifications/migrations/0002_reminder_notification_types.py
======================================================
MIGRATION: payment / overdue reminder notification types
"""

from __future__ import annotations

from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="notification",
            name="type",
            field=models.CharField(
                choices=[
                    ("INVOICE_ISSUED", "Invoice issued"),
                    ("INVOICE_SENT", "Invoice sent"),
                    ("INVOICE_VOIDED", "Invoice voided"),
                    ("INVOICE_OVERDUE", "Invoice overdue"),
                    ("INVOICE_REMINDER_SENT", "Payment reminder sent"),
                    ("INVOICE_OVERDUE_REMINDER", "Overdue reminder sent"),
                    ("PAYMENT_RECEIVED", "Payment received"),
                    ("TEAM_INVITE", "Added to a business"),
                ],
                max_length=40,
            ),
        ),
    ]
