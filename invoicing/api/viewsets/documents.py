# invoicing/api/viewsets/documents.py

"""
RECEIPTS / CREDIT NOTES (READ-ONLY)

GET /api/receipts/            ?business=&invoice=&currency_account=
GET /api/receipts/<id>/
GET /api/credit-notes/        ?business=&original_invoice=
GET /api/credit-notes/<id>/

Both are immutable documents; there are no write routes.
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from businesses.models import Business
from invoicing.api.serializers.documents import CreditNoteSerializer, ReceiptSerializer
from invoicing.models import CreditNote, Receipt
from permissions.roles import CAP_INVOICE_VIEW, HasCapability, is_platform_admin


def _scoped(qs, user):
    if is_platform_admin(user):
        return qs
    return qs.filter(business__in=Business.objects.filter(members__user=user))


class ReceiptViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ReceiptSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_INVOICE_VIEW
    filterset_fields = ["business", "invoice", "currency_account"]

    def get_queryset(self):
        return _scoped(Receipt.objects.select_related("business"), self.request.user).order_by("-issued_at")


class CreditNoteViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CreditNoteSerializer
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_INVOICE_VIEW
    filterset_fields = ["business", "original_invoice"]

    def get_queryset(self):
        return _scoped(
            CreditNote.objects.select_related("business", "original_invoice"),
            self.request.user,
        ).order_by("-issued_at")
