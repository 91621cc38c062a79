# invoicing/models/invoice.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0.00")


class Invoice(models.Model):
    """
    An invoice issued by a business to a client.

    GUARANTEES:
    - Drafts are freely editable.
    - Once issued the document is a legal record: financial fields,
      snapshots and integrity fields are frozen (see _validate_immutable).
    - Status changes follow invoicing.services.invoice_lifecycle.
    - Only drafts can be deleted.
    """

    STATUS_DRAFT = "draft"
    STATUS_ISSUED = "issued"
    STATUS_SENT = "sent"
    STATUS_VIEWED = "viewed"
    STATUS_PAID = "paid"
    STATUS_VOIDED = "voided"
    STATUS_CREDITED = "credited"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ISSUED, "Issued"),
        (STATUS_SENT, "Sent"),
        (STATUS_VIEWED, "Viewed"),
        (STATUS_PAID, "Paid"),
        (STATUS_VOIDED, "Voided"),
        (STATUS_CREDITED, "Credited"),
    ]

    OPEN_STATUSES = (STATUS_ISSUED, STATUS_SENT, STATUS_VIEWED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    business = models.ForeignKey(
        "businesses.Business",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    currency_account = models.ForeignKey(
        "businesses.CurrencyAccount",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )
    client = models.ForeignKey(
        "businesses.Client",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )

    invoice_number = models.CharField(max_length=50)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    currency = models.CharField(max_length=3, default="NGN")

    subtotal = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    amount_paid = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)

    exchange_rate_to_primary = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        null=True,
        blank=True,
        help_text="Units of the business's primary currency per 1 unit of this invoice's currency.",
    )

    issue_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    terms = models.TextField(blank=True, default="")

    # --------------------------------------------------
    # Compliance (set once, at issuance)
    # --------------------------------------------------
    issued_at = models.DateTimeField(null=True, blank=True)
    issued_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_invoices",
    )
    invoice_hash = models.CharField(max_length=64, blank=True, default="")
    verification_id = models.UUIDField(null=True, blank=True, unique=True)
    issuer_snapshot = models.JSONField(null=True, blank=True)
    recipient_snapshot = models.JSONField(null=True, blank=True)
    tax_schema_snapshot = models.JSONField(null=True, blank=True)
    tax_schema_version = models.CharField(max_length=20, blank=True, default="")
    retention_locked_until = models.DateField(null=True, blank=True)

    # --------------------------------------------------
    # Void
    # --------------------------------------------------
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voided_invoices",
    )
    void_reason = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_invoices",
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "invoice_number"],
                name="uniq_invoice_number_per_business",
            ),
        ]
        indexes = [
            models.Index(fields=["business", "status"], name="invoice_business_status_idx"),
            models.Index(fields=["business", "issued_at"], name="invoice_business_issued_idx"),
            models.Index(fields=["due_date"], name="invoice_due_date_idx"),
        ]

    _IMMUTABLE_FIELDS_AFTER_ISSUE = (
        "business_id",
        "currency_account_id",
        "client_id",
        "invoice_number",
        "currency",
        "subtotal",
        "tax_amount",
        "discount_amount",
        "total_amount",
        "issue_date",
        "issued_at",
        "issued_by_id",
        "invoice_hash",
        "verification_id",
        "issuer_snapshot",
        "recipient_snapshot",
        "tax_schema_snapshot",
        "tax_schema_version",
        "retention_locked_until",
    )

    # ======================================================
    # DERIVED
    # ======================================================

    @property
    def balance_due(self) -> Decimal:
        return max(Decimal(self.total_amount) - Decimal(self.amount_paid), ZERO)

    @property
    def is_overdue(self) -> bool:
        return (
            self.status in self.OPEN_STATUSES
            and self.due_date is not None
            and self.due_date < timezone.localdate()
        )

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def _validate_immutable(self, previous: "Invoice"):
        if previous.status != self.status:
            # local import: lifecycle module imports this model
            from invoicing.services.invoice_lifecycle import can_transition

            if not can_transition(from_status=previous.status, to_status=self.status):
                raise ValueError(
                    f"Invoice cannot transition from '{previous.status}' to '{self.status}'"
                )

        if previous.status == self.STATUS_DRAFT:
            return

        for field in self._IMMUTABLE_FIELDS_AFTER_ISSUE:
            if getattr(self, field) != getattr(previous, field):
                raise ValueError(
                    f"Invoice is immutable once {previous.status}. "
                    f"Field '{field.removesuffix('_id')}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Invoice.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_immutable(previous)

        self.currency = (self.currency or "").strip().upper()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != self.STATUS_DRAFT:
            raise ValueError("Only draft invoices can be deleted")
        return super().delete(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_number} | {self.total_amount} {self.currency}"


class InvoiceItem(models.Model):
    """
    Invoice line. Editable only while the parent invoice is a draft.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="items",
    )
    description = models.CharField(max_length=500)
    quantity = models.DecimalField(max_digits=15, decimal_places=3, default=Decimal("1.000"))
    unit_price = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=ZERO)
    discount_percent = models.DecimalField(max_digits=5, decimal_places=2, default=ZERO)

    tax_amount = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)
    amount = models.DecimalField(max_digits=15, decimal_places=2, default=ZERO)

    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "id"]

    def _assert_invoice_editable(self):
        status = Invoice.objects.filter(pk=self.invoice_id).values_list("status", flat=True).first()
        if status is not None and status != Invoice.STATUS_DRAFT:
            raise ValueError("Items of an issued invoice cannot be modified")

    def save(self, *args, **kwargs):
        self._assert_invoice_editable()
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._assert_invoice_editable()
        return super().delete(*args, **kwargs)

    def __str__(self):
        return f"{self.description} x {self.quantity}"
