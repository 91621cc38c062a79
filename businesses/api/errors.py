# businesses/api/errors.py

from rest_framework import status

from backend.api_errors import error_response
from businesses.services.exceptions import (
    BusinessAccessDenied,
    BusinessNotFoundError,
    BusinessServiceError,
    DuplicateCurrencyAccountError,
    DuplicateMemberError,
)

# subclasses before their bases
_STATUS_TABLE = (
    (BusinessNotFoundError, status.HTTP_404_NOT_FOUND),
    (BusinessAccessDenied, status.HTTP_403_FORBIDDEN),
    (DuplicateMemberError, status.HTTP_409_CONFLICT),
    (DuplicateCurrencyAccountError, status.HTTP_409_CONFLICT),
)


def business_error_response(exc: BusinessServiceError):
    for exc_type, http_status in _STATUS_TABLE:
        if isinstance(exc, exc_type):
            return error_response(message=str(exc), http_status=http_status)
    return error_response(message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
