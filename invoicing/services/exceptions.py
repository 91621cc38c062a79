# invoicing/services/exceptions.py

"""
INVOICING SERVICE ERRORS

Views map these to HTTP statuses (invoicing.api.errors).
"""


class InvoiceServiceError(Exception):
    """Base exception for all invoicing service failures."""


class InvoiceValidationError(InvoiceServiceError):
    """Bad input (400)."""


class InvoiceNotFoundError(InvoiceServiceError):
    """Invoice / receipt missing or not visible to the caller (404)."""


class InvalidInvoiceStateError(InvoiceServiceError):
    """Operation not allowed in the invoice's current status (400)."""


class DuplicateCreditNoteError(InvoiceServiceError):
    """Invoice already has a credit note (409)."""


class InvoicePermissionError(InvoiceServiceError):
    """Caller lacks the business capability (403)."""


class EmailNotVerifiedError(InvoicePermissionError):
    """Issuing legal documents requires a verified email (403)."""


class InvoiceDeliveryError(InvoiceServiceError):
    """Outbound email failed (500)."""


class EmailServiceNotConfiguredError(InvoiceDeliveryError):
    """No email provider configured (500)."""
