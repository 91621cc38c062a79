# businesses/models/client.py

import uuid

from django.db import models

from .business import Business


class Client(models.Model):
    """
    Invoice recipient. Live data; invoices freeze a copy at issuance
    (Invoice.recipient_snapshot), so later edits never alter issued documents.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        Business,
        on_delete=models.CASCADE,
        related_name="clients",
    )

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.JSONField(default=dict, blank=True)
    contact_person = models.CharField(max_length=255, blank=True, default="")
    tax_id = models.CharField(max_length=100, blank=True, default="")
    cac_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["business", "name"], name="client_business_name_idx"),
        ]

    def __str__(self):
        return self.name
