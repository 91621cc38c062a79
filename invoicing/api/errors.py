# invoicing/api/errors.py

from rest_framework import status

from backend.api_errors import error_response
from invoicing.services.exceptions import (
    DuplicateCreditNoteError,
    EmailServiceNotConfiguredError,
    InvalidInvoiceStateError,
    InvoiceDeliveryError,
    InvoiceNotFoundError,
    InvoicePermissionError,
    InvoiceServiceError,
    InvoiceValidationError,
)

# first match wins: subclasses before their bases
_STATUS_TABLE = (
    (InvoiceValidationError, status.HTTP_400_BAD_REQUEST),
    (InvoiceNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateCreditNoteError, status.HTTP_409_CONFLICT),
    (InvoicePermissionError, status.HTTP_403_FORBIDDEN),
    (InvalidInvoiceStateError, status.HTTP_400_BAD_REQUEST),
    (EmailServiceNotConfiguredError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (InvoiceDeliveryError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (InvoiceServiceError, status.HTTP_400_BAD_REQUEST),
)


def invoice_error_response(exc: InvoiceServiceError):
    for exc_type, http_status in _STATUS_TABLE:
        if isinstance(exc, exc_type):
            return error_response(message=str(exc), http_status=http_status)
    return error_response(message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
