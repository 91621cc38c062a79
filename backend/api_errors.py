# backend/api_errors.py

"""
API ERROR NORMALIZATION

Every error body leaving the API has the shape:
    {"success": false, "error": "<message>", ...extra}

- error_response():           used by views for domain errors
- api_exception_handler():    DRF EXCEPTION_HANDLER; reshapes DRF's own
                              errors (validation, auth, 404, throttling)
                              and turns anything unhandled into a
                              logged, generic JSON 500
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


def error_response(*, message: str, http_status: int, **extra) -> Response:
    """
    Canonical API error response.
    """
    return Response({"success": False, "error": message, **extra}, status=http_status)


def upgrade_required_response(result, message: str | None = None) -> Response:
    """
    403 for a failed tier check (billing.services.tier_service.TierCheckResult).
    """
    return error_response(
        message=message or result.reason or "Upgrade required",
        http_status=status.HTTP_403_FORBIDDEN,
        upgrade_required=True,
        tier=result.tier,
        feature=result.feature,
    )


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        for key, value in detail.items():
            msg = _first_message(value)
            if key == "non_field_errors":
                return msg
            return f"{key}: {msg}"
        return "Invalid request"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid request"
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled API error",
            exc_info=exc,
            extra={"view": type(view).__name__ if view is not None else None},
        )
        set_rollback()
        return error_response(
            message=GENERIC_ERROR_MESSAGE,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        response.data = {
            "success": False,
            "error": _first_message(response.data),
            "details": response.data,
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    response.data = {"success": False, "error": str(detail or "Request failed")}
    return response
