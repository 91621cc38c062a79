"""
======================================================
PATH: billing/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Subscription, TierLimit
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.db import migrations, models

TIER_CHOICES = [
    ("starter", "Starter"),
    ("starter_paid", "Starter (Paid)"),
    ("professional", "Professional"),
    ("business", "Business"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("tier", models.CharField(choices=TIER_CHOICES, default="starter", max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("trialing", "Trialing"),
                            ("past_due", "Past due"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("current_period_start", models.DateTimeField(blank=True, null=True)),
                ("current_period_end", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscriptions",
                        to="businesses.business",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["business", "status"], name="subscription_business_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TierLimit",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("tier", models.CharField(choices=TIER_CHOICES, max_length=20)),
                ("feature", models.CharField(max_length=64)),
                ("limit_value", models.IntegerField(blank=True, null=True)),
                (
                    "limit_type",
                    models.CharField(
                        choices=[
                            ("count", "Count"),
                            ("boolean", "Boolean"),
                            ("unlimited", "Unlimited"),
                        ],
                        max_length=16,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
            ],
            options={
                "ordering": ["tier", "feature"],
                "constraints": [
                    models.UniqueConstraint(fields=("tier", "feature"), name="uniq_tier_feature"),
                ],
            },
        ),
    ]
