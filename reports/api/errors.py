# reports/api/errors.py

from rest_framework import status

from backend.api_errors import error_response
from reports.services.report_service import ReportAccessDenied, ReportError


def report_error_response(exc: ReportError):
    if isinstance(exc, ReportAccessDenied):
        return error_response(message=str(exc), http_status=status.HTTP_403_FORBIDDEN)
    return error_response(message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)
