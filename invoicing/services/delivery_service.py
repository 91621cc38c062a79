# invoicing/services/delivery_service.py

"""
INVOICE EMAIL DELIVERY

send_invoice_email():
- issued (non-draft) invoices only
- renders an inline-CSS email + a printable HTML attachment
- sends through Brevo (notifications.services.brevo)
- on success: issued -> sent (other states keep their status),
  audit INVOICE_SENT + notification (best-effort)

The provider call happens outside any transaction; the status change
is committed only after the provider accepted the message.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.template.loader import render_to_string

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from invoicing.models import Invoice
from invoicing.services.exceptions import (
    EmailServiceNotConfiguredError,
    InvalidInvoiceStateError,
    InvoiceDeliveryError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from invoicing.services.invoice_lifecycle import can_transition
from invoicing.services.sanitize import sanitize_text
from invoicing.services.snapshots import issuer_name
from notifications.models import Notification
from notifications.services.brevo import (
    EmailDeliveryError,
    encode_attachment,
    is_email_configured,
    send_transactional_email,
)
from notifications.services.notification_service import notify_safely

logger = logging.getLogger(__name__)


def verification_url(invoice: Invoice) -> str:
    return f"{settings.APP_URL}/verify/invoice/{invoice.verification_id}"


def render_invoice_email(invoice: Invoice, *, custom_message: str = "") -> tuple[str, str]:
    """
    Returns (email_html, attachment_html).
    """
    context = {
        "invoice": invoice,
        "items": list(invoice.items.order_by("sort_order")),
        "issuer_name": issuer_name(invoice),
        "recipient_name": (invoice.recipient_snapshot or {}).get("name", ""),
        "custom_message": custom_message,
        "balance_due": invoice.balance_due,
        "verification_url": verification_url(invoice),
    }
    return (
        render_to_string("invoicing/email/invoice_email.html", context),
        render_to_string("invoicing/email/invoice_attachment.html", context),
    )


def send_invoice_email(
    *,
    invoice_id,
    user,
    recipient_email,
    custom_message=None,
    visible_invoices=None,
    request=None,
) -> dict:
    recipient_email = (recipient_email or "").strip()
    if not invoice_id or not recipient_email:
        raise InvoiceValidationError("Missing required fields: invoice_id and recipient_email")

    try:
        validate_email(recipient_email)
    except ValidationError as exc:
        raise InvoiceValidationError("Invalid recipient email address") from exc

    qs = visible_invoices if visible_invoices is not None else Invoice.objects.all()
    try:
        invoice = qs.select_related("business").filter(pk=invoice_id).first()
    except ValidationError as exc:
        raise InvoiceNotFoundError("Invoice not found") from exc
    if invoice is None:
        raise InvoiceNotFoundError("Invoice not found")

    if invoice.status == Invoice.STATUS_DRAFT:
        raise InvalidInvoiceStateError("Cannot send draft invoices. Please issue the invoice first.")

    if not is_email_configured():
        raise EmailServiceNotConfiguredError("Email service not configured")

    business_name = issuer_name(invoice)
    html, attachment_html = render_invoice_email(invoice, custom_message=sanitize_text(custom_message))

    try:
        send_transactional_email(
            to_email=recipient_email,
            to_name=(invoice.recipient_snapshot or {}).get("name") or recipient_email,
            subject=f"Invoice {invoice.invoice_number} from {business_name}",
            html_content=html,
            sender_name=business_name,
            attachments=[
                encode_attachment(
                    name=f"Invoice-{invoice.invoice_number}.html",
                    content=attachment_html,
                )
            ],
        )
    except EmailDeliveryError as exc:
        logger.exception(
            "Invoice email delivery failed",
            extra={"invoice_id": str(invoice.id), "business_id": str(invoice.business_id)},
        )
        raise InvoiceDeliveryError("Failed to send email. Please try again later.") from exc

    with transaction.atomic():
        locked = Invoice.objects.select_for_update().get(pk=invoice.pk)
        previous_status = locked.status
        if locked.status == Invoice.STATUS_ISSUED and can_transition(
            from_status=locked.status, to_status=Invoice.STATUS_SENT
        ):
            locked.status = Invoice.STATUS_SENT
            locked.save(update_fields=["status", "updated_at"])

    log_audit_event_safely(
        event_type=AuditEventType.INVOICE_SENT,
        entity_type="invoice",
        entity_id=locked.id,
        actor=user,
        business=locked.business,
        previous_state={"status": previous_status},
        new_state={"status": locked.status},
        metadata={"recipient_email": recipient_email, "attachment_included": True},
        request=request,
    )
    notify_safely(
        user=user,
        business=locked.business,
        type=Notification.TYPE_INVOICE_SENT,
        title=f"Invoice {locked.invoice_number} sent",
        message=f"Sent to {recipient_email}",
        entity_type="invoice",
        entity_id=locked.id,
    )

    return {
        "success": True,
        "message": f"Invoice sent to {recipient_email}",
        "recipient": recipient_email,
        "attachment_included": True,
    }
