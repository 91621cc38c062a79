"""
======================================================
PATH: users/migrations/0002_payment_reminder_preferences.py
======================================================
MIGRATION: client payment reminder preferences on User
"""

from __future__ import annotations

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="user",
            name="email_payment_reminders",
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name="user",
            name="reminder_days_before",
            field=models.PositiveSmallIntegerField(
                default=3,
                validators=[
                    django.core.validators.MinValueValidator(1),
                    django.core.validators.MaxValueValidator(14),
                ],
            ),
        ),
        migrations.AddField(
            model_name="user",
            name="reminder_schedule",
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name="user",
            name="overdue_reminder_enabled",
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name="user",
            name="overdue_reminder_schedule",
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name="user",
            name="reminder_email_template",
            field=models.TextField(blank=True, default=""),
        ),
    ]
