# invoicing/api/viewsets/invoice.py

"""
======================================================
PATH: invoicing/api/viewsets/invoice.py
======================================================
INVOICE VIEWSET

Purpose:
- Draft CRUD (create / update / delete drafts only)
- Lifecycle commands:
    POST /api/invoices/<id>/issue/
    POST /api/invoices/<id>/record-payment/
    POST /api/invoices/<id>/void/
    POST /api/invoices/<id>/send/

Security:
- Queryset is scoped to the caller's businesses (platform admins see all);
  invoices in other tenants are reported as 404.
- Each action requires a business capability (object level):
    list/retrieve      invoice.view
    update/destroy     invoice.edit
    issue / send       invoice.issue
    record-payment     payment.record
    void               invoice.void
- issue additionally requires a verified email and the
  invoices_per_month tier check.
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.api_errors import error_response, upgrade_required_response
from billing.services.tier_service import TierLimitExceeded
from businesses.models import Business
from invoicing.api.errors import invoice_error_response
from invoicing.api.serializers.invoice import (
    InvoiceSerializer,
    InvoiceWriteSerializer,
    IssueInvoiceSerializer,
    SendInvoiceSerializer,
    VoidInvoiceSerializer,
)
from invoicing.models import Invoice
from invoicing.services.delivery_service import send_invoice_email
from invoicing.services.exceptions import InvoiceServiceError
from invoicing.services.invoice_service import (
    create_invoice,
    delete_draft_invoice,
    update_draft_invoice,
)
from invoicing.services.issue_service import issue_invoice
from invoicing.services.payment_service import record_payment
from invoicing.services.void_service import void_invoice
from permissions.roles import (
    CAP_INVOICE_EDIT,
    CAP_INVOICE_ISSUE,
    CAP_INVOICE_VIEW,
    CAP_INVOICE_VOID,
    CAP_PAYMENT_RECORD,
    HasCapability,
    has_capability,
    is_platform_admin,
)


def scoped_invoices(user):
    """
    Invoices of businesses the user belongs to (subquery, no DISTINCT, so
    services can lock rows from it).
    """
    qs = Invoice.objects.all()
    if is_platform_admin(user):
        return qs
    return qs.filter(business__in=Business.objects.filter(members__user=user))


class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["business", "currency_account", "status", "client"]

    required_capability = None

    _ACTION_CAPABILITIES = {
        "list": CAP_INVOICE_VIEW,
        "retrieve": CAP_INVOICE_VIEW,
        "create": CAP_INVOICE_EDIT,
        "update": CAP_INVOICE_EDIT,
        "partial_update": CAP_INVOICE_EDIT,
        "destroy": CAP_INVOICE_EDIT,
        "issue": CAP_INVOICE_ISSUE,
        "send": CAP_INVOICE_ISSUE,
        "record_payment": CAP_PAYMENT_RECORD,
        "void": CAP_INVOICE_VOID,
    }

    def get_permissions(self):
        self.required_capability = self._ACTION_CAPABILITIES.get(self.action)
        return [IsAuthenticated(), HasCapability()]

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return InvoiceWriteSerializer
        return InvoiceSerializer

    def get_queryset(self):
        return (
            scoped_invoices(self.request.user)
            .select_related("business", "client", "currency_account")
            .prefetch_related("items")
            .order_by("-created_at")
        )

    # ======================================================
    # DRAFT CRUD
    # ======================================================

    @extend_schema(request=InvoiceWriteSerializer, responses={201: InvoiceSerializer})
    def create(self, request, *args, **kwargs):
        ser = InvoiceWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        business = Business.objects.filter(id=data.get("business")).first() if data.get("business") else None
        if business is None:
            return error_response(message="business is required", http_status=status.HTTP_400_BAD_REQUEST)
        if not has_capability(request.user, business, CAP_INVOICE_EDIT):
            return error_response(
                message="You do not have permission to create invoices for this business",
                http_status=status.HTTP_403_FORBIDDEN,
            )

        try:
            invoice = create_invoice(
                business=business,
                user=request.user,
                client=data.get("client"),
                currency_account=data.get("currency_account"),
                items=data.get("items") or [],
                issue_date=data.get("issue_date"),
                due_date=data.get("due_date"),
                notes=data.get("notes", ""),
                terms=data.get("terms", ""),
                exchange_rate_to_primary=data.get("exchange_rate_to_primary"),
                request=request,
            )
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        return Response(
            {"success": True, "invoice": InvoiceSerializer(invoice).data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=InvoiceWriteSerializer, responses={200: InvoiceSerializer})
    def update(self, request, *args, **kwargs):
        invoice = self.get_object()

        ser = InvoiceWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        data.pop("business", None)
        items = data.pop("items", None)

        try:
            invoice = update_draft_invoice(
                invoice=invoice,
                user=request.user,
                data=data,
                items=items,
                request=request,
            )
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        invoice.refresh_from_db()
        return Response({"success": True, "invoice": InvoiceSerializer(invoice).data})

    def partial_update(self, request, *args, **kwargs):
        return self.update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        invoice = self.get_object()
        try:
            delete_draft_invoice(invoice=invoice, user=request.user, request=request)
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ======================================================
    # ISSUE
    # ======================================================

    @extend_schema(request=IssueInvoiceSerializer, responses={200: dict, 400: dict, 403: dict})
    @action(detail=True, methods=["post"], url_path="issue")
    def issue(self, request, pk=None):
        invoice = self.get_object()

        ser = IssueInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            invoice = issue_invoice(
                invoice=invoice,
                user=request.user,
                issue_date=ser.validated_data.get("issue_date"),
                request=request,
            )
        except TierLimitExceeded as exc:
            return upgrade_required_response(exc.result, str(exc))
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        return Response(
            {
                "success": True,
                "invoice": {
                    "id": str(invoice.id),
                    "invoice_number": invoice.invoice_number,
                    "verification_id": str(invoice.verification_id),
                    "issued_at": invoice.issued_at.isoformat(),
                    "invoice_hash": invoice.invoice_hash,
                },
            }
        )

    # ======================================================
    # RECORD PAYMENT
    # ======================================================

    @extend_schema(request=dict, responses={200: dict, 400: dict, 404: dict})
    @action(detail=True, methods=["post"], url_path="record-payment")
    def record_payment(self, request, pk=None):
        invoice = self.get_object()
        body = request.data

        try:
            result = record_payment(
                invoice_id=invoice.id,
                user=request.user,
                amount=body.get("amount"),
                payment_method=body.get("payment_method"),
                payment_reference=body.get("payment_reference"),
                payment_date=body.get("payment_date"),
                notes=body.get("notes"),
                visible_invoices=scoped_invoices(request.user),
                request=request,
            )
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        return Response(
            {
                "success": True,
                "payment": {
                    "id": str(result.payment.id),
                    "invoice_id": str(result.invoice.id),
                    "amount": str(result.payment.amount),
                    "payment_date": result.payment.payment_date.isoformat(),
                },
                "invoice_status": result.invoice.status,
                "receipt": {
                    "id": str(result.receipt.id),
                    "receipt_number": result.receipt.receipt_number,
                    "verification_id": str(result.receipt.verification_id),
                },
            }
        )

    # ======================================================
    # VOID
    # ======================================================

    @extend_schema(request=VoidInvoiceSerializer, responses={200: dict, 400: dict, 409: dict})
    @action(detail=True, methods=["post"], url_path="void")
    def void(self, request, pk=None):
        invoice = self.get_object()

        ser = VoidInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            credit_note = void_invoice(
                invoice_id=invoice.id,
                user=request.user,
                reason=ser.validated_data.get("reason"),
                visible_invoices=scoped_invoices(request.user),
                request=request,
            )
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        return Response(
            {
                "success": True,
                "credit_note": {
                    "id": str(credit_note.id),
                    "credit_note_number": credit_note.credit_note_number,
                    "amount": str(credit_note.amount),
                    "reason": credit_note.reason,
                    "issued_at": credit_note.issued_at.isoformat(),
                },
            }
        )

    # ======================================================
    # SEND
    # ======================================================

    @extend_schema(request=SendInvoiceSerializer, responses={200: dict, 400: dict, 500: dict})
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, pk=None):
        invoice = self.get_object()

        ser = SendInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            result = send_invoice_email(
                invoice_id=invoice.id,
                user=request.user,
                recipient_email=ser.validated_data.get("recipient_email"),
                custom_message=ser.validated_data.get("custom_message"),
                visible_invoices=scoped_invoices(request.user),
                request=request,
            )
        except InvoiceServiceError as exc:
            return invoice_error_response(exc)

        return Response(result)
