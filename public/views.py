"""
======================================================
PATH: public/views.py
======================================================
PUBLIC VERIFICATION (ALLOWANY)

GET /api/public/verify-invoice/?verification_id=<uuid>
GET /api/public/view-invoice/?verification_id=<uuid>
GET /api/public/verify-receipt/?verification_id=<uuid>

Rules:
- No authentication; throttled under the `public_verify` scope
- Only snapshot data is returned (never live business/client rows)
- 400 missing/invalid id or draft, 404 unknown id
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from invoicing.services.exceptions import InvoiceNotFoundError, InvoiceServiceError
from invoicing.services.verification_service import verify_invoice, verify_receipt, view_invoice


class PublicVerifyThrottle(AnonRateThrottle):
    scope = "public_verify"


VERIFICATION_ID_PARAM = OpenApiParameter(
    name="verification_id",
    type=str,
    location=OpenApiParameter.QUERY,
    required=True,
    description="Public verification UUID printed on the document.",
)

PUBLIC_RESPONSES = {
    200: OpenApiResponse(description="Document found"),
    400: OpenApiResponse(description="Missing / invalid verification id, or draft"),
    404: OpenApiResponse(description="Not found"),
    429: OpenApiResponse(description="Rate limited"),
}


def _status_for(exc: InvoiceServiceError) -> int:
    if isinstance(exc, InvoiceNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


class _PublicLookupView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicVerifyThrottle]

    # key used for the flag in error bodies
    failure_key = "verified"

    def lookup(self, *, verification_id, request):
        raise NotImplementedError

    @extend_schema(tags=["Public"], parameters=[VERIFICATION_ID_PARAM], responses=PUBLIC_RESPONSES)
    def get(self, request, *args, **kwargs):
        verification_id = request.query_params.get("verification_id")
        try:
            payload = self.lookup(verification_id=verification_id, request=request)
        except InvoiceServiceError as exc:
            return Response({self.failure_key: False, "error": str(exc)}, status=_status_for(exc))
        return Response(payload)


class VerifyInvoiceView(_PublicLookupView):
    def lookup(self, *, verification_id, request):
        return verify_invoice(verification_id=verification_id, request=request)


class ViewInvoiceView(_PublicLookupView):
    failure_key = "success"

    def lookup(self, *, verification_id, request):
        return view_invoice(verification_id=verification_id, request=request)


class VerifyReceiptView(_PublicLookupView):
    def lookup(self, *, verification_id, request):
        return verify_receipt(verification_id=verification_id, request=request)
