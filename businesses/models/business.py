# businesses/models/business.py

"""
BUSINESS (TENANT ROOT)

Everything financial hangs off a Business:
- members (owner/admin/member/auditor)
- currency accounts (one per currency)
- clients, invoices, expenses, receipts

Numbering:
- next_invoice_number / next_receipt_number are per-business counters.
  They are only advanced by services under select_for_update().
"""

import uuid

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class Business(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    legal_name = models.CharField(max_length=255, blank=True, default="")

    tax_id = models.CharField(max_length=100, blank=True, default="")
    cac_number = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Company registration number",
    )
    vat_registration_number = models.CharField(max_length=100, blank=True, default="")
    is_vat_registered = models.BooleanField(default=False)

    contact_email = models.EmailField(blank=True, default="")
    contact_phone = models.CharField(max_length=50, blank=True, default="")
    address = models.JSONField(default=dict, blank=True)
    logo_url = models.URLField(max_length=500, blank=True, default="")

    jurisdiction = models.CharField(
        max_length=2,
        default="NG",
        help_text="ISO 3166-1 alpha-2 country code",
    )
    default_currency = models.CharField(max_length=3, default="NGN")

    invoice_prefix = models.CharField(max_length=20, default="INV")
    next_invoice_number = models.PositiveIntegerField(default=1)
    next_receipt_number = models.PositiveIntegerField(default=1)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_businesses",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Businesses"

    def __str__(self):
        return self.name
