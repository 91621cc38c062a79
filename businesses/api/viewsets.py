"""
======================================================
PATH: businesses/api/viewsets.py
======================================================
BUSINESS VIEWSET

    /api/businesses/                                   list (mine) / create
    /api/businesses/<id>/                              retrieve / PATCH
    /api/businesses/<id>/members/                      GET / POST
    /api/businesses/<id>/members/<member_id>/          PATCH / DELETE
    /api/businesses/<id>/currency-accounts/            GET / POST
    /api/businesses/<id>/clients/                      GET / POST
    /api/businesses/<id>/clients/<client_id>/          GET / PATCH
    /api/businesses/<id>/summary/                      GET

Security:
- Queryset is the caller's businesses (platform admins see all); anything
  else is a 404.
- Capabilities are checked on the business object per (action, method).
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
from businesses.api.errors import business_error_response
from businesses.api.serializers import (
    AddMemberSerializer,
    BusinessMemberSerializer,
    BusinessSerializer,
    BusinessWriteSerializer,
    ChangeRoleSerializer,
    ClientSerializer,
    CurrencyAccountCreateSerializer,
    CurrencyAccountSerializer,
)
from businesses.models import BusinessMember, Client, CurrencyAccount
from businesses.services.business_service import (
    businesses_for_user,
    create_business,
    update_business,
)
from businesses.services.client_service import create_client, update_client
from businesses.services.currency_account_service import create_currency_account
from businesses.services.exceptions import BusinessServiceError
from businesses.services.membership_service import (
    add_member,
    change_member_role,
    remove_member,
)
from businesses.services.summary_service import business_summary
from permissions.roles import (
    CAP_BUSINESS_MANAGE,
    CAP_CLIENT_MANAGE,
    CAP_CURRENCY_ACCOUNT_MANAGE,
    CAP_INVOICE_VIEW,
    CAP_REPORTS_VIEW,
    CAP_TEAM_MANAGE,
    HasCapability,
)

READ_METHODS = ("GET", "HEAD", "OPTIONS")
UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class BusinessViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BusinessSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    required_capability = None

    # (read capability, write capability)
    _ACTION_CAPABILITIES = {
        "retrieve": (CAP_INVOICE_VIEW, None),
        "partial_update": (None, CAP_BUSINESS_MANAGE),
        "members": (CAP_INVOICE_VIEW, CAP_TEAM_MANAGE),
        "member_detail": (None, CAP_TEAM_MANAGE),
        "currency_accounts": (CAP_INVOICE_VIEW, CAP_CURRENCY_ACCOUNT_MANAGE),
        "clients": (CAP_INVOICE_VIEW, CAP_CLIENT_MANAGE),
        "client_detail": (CAP_INVOICE_VIEW, CAP_CLIENT_MANAGE),
        "summary": (CAP_REPORTS_VIEW, None),
    }

    def get_permissions(self):
        read_cap, write_cap = self._ACTION_CAPABILITIES.get(self.action, (None, None))
        self.required_capability = read_cap if self.request.method in READ_METHODS else write_cap
        return [IsAuthenticated(), HasCapability()]

    def get_queryset(self):
        return businesses_for_user(self.request.user).order_by("name")

    def get_serializer_context(self):
        return {**super().get_serializer_context(), "request": self.request}

    # ======================================================
    # BUSINESS
    # ======================================================

    @extend_schema(request=BusinessWriteSerializer, responses={201: BusinessSerializer})
    def create(self, request, *args, **kwargs):
        ser = BusinessWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        name = data.pop("name")

        try:
            business = create_business(user=request.user, name=name, request=request, **data)
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response(
            {"success": True, "business": BusinessSerializer(business, context={"request": request}).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        return self.partial_update(request, *args, **kwargs)

    @extend_schema(request=BusinessWriteSerializer, responses={200: BusinessSerializer})
    def partial_update(self, request, *args, **kwargs):
        business = self.get_object()

        ser = BusinessWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            business = update_business(
                business=business,
                user=request.user,
                data=dict(ser.validated_data),
                request=request,
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response(
            {"success": True, "business": BusinessSerializer(business, context={"request": request}).data}
        )

    # ======================================================
    # MEMBERS
    # ======================================================

    @extend_schema(request=AddMemberSerializer, responses={200: BusinessMemberSerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="members")
    def members(self, request, pk=None):
        business = self.get_object()

        if request.method == "GET":
            qs = BusinessMember.objects.filter(business=business).select_related("user")
            return Response(
                {"success": True, "members": BusinessMemberSerializer(qs, many=True).data}
            )

        ser = AddMemberSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            member = add_member(
                business=business,
                actor=request.user,
                email=ser.validated_data["email"],
                role=ser.validated_data["role"],
                request=request,
            )
        except TierLimitExceeded as exc:
            return upgrade_required_response(exc.result, str(exc))
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response(
            {"success": True, "member": BusinessMemberSerializer(member).data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=ChangeRoleSerializer, responses={200: BusinessMemberSerializer})
    @action(detail=True, methods=["patch", "delete"], url_path=r"members/(?P<member_id>" + UUID_PATTERN + ")")
    def member_detail(self, request, pk=None, member_id=None):
        business = self.get_object()

        member = BusinessMember.objects.filter(business=business, id=member_id).select_related("user").first()
        if member is None:
            return error_response(message="Member not found", http_status=status.HTTP_404_NOT_FOUND)

        try:
            if request.method == "DELETE":
                remove_member(member=member, actor=request.user, request=request)
                return Response(status=status.HTTP_204_NO_CONTENT)

            ser = ChangeRoleSerializer(data=request.data)
            ser.is_valid(raise_exception=True)
            member = change_member_role(
                member=member,
                actor=request.user,
                role=ser.validated_data["role"],
                request=request,
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response({"success": True, "member": BusinessMemberSerializer(member).data})

    # ======================================================
    # CURRENCY ACCOUNTS
    # ======================================================

    @extend_schema(request=CurrencyAccountCreateSerializer, responses={200: CurrencyAccountSerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="currency-accounts")
    def currency_accounts(self, request, pk=None):
        business = self.get_object()

        if request.method == "GET":
            qs = CurrencyAccount.objects.filter(business=business)
            return Response(
                {"success": True, "currency_accounts": CurrencyAccountSerializer(qs, many=True).data}
            )

        ser = CurrencyAccountCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            account = create_currency_account(
                business=business,
                actor=request.user,
                currency=ser.validated_data["currency"],
                name=ser.validated_data.get("name", ""),
                is_default=ser.validated_data.get("is_default", False),
                request=request,
            )
        except TierLimitExceeded as exc:
            return upgrade_required_response(exc.result, str(exc))
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response(
            {"success": True, "currency_account": CurrencyAccountSerializer(account).data},
            status=status.HTTP_201_CREATED,
        )

    # ======================================================
    # CLIENTS
    # ======================================================

    @extend_schema(request=ClientSerializer, responses={200: ClientSerializer(many=True)})
    @action(detail=True, methods=["get", "post"], url_path="clients")
    def clients(self, request, pk=None):
        business = self.get_object()

        if request.method == "GET":
            qs = Client.objects.filter(business=business).order_by("name")
            search = (request.query_params.get("search") or "").strip()
            if search:
                qs = qs.filter(name__icontains=search)
            return Response({"success": True, "clients": ClientSerializer(qs, many=True).data})

        ser = ClientSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            client = create_client(
                business=business,
                actor=request.user,
                data=dict(ser.validated_data),
                request=request,
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response(
            {"success": True, "client": ClientSerializer(client).data},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=ClientSerializer, responses={200: ClientSerializer})
    @action(detail=True, methods=["get", "patch"], url_path=r"clients/(?P<client_id>" + UUID_PATTERN + ")")
    def client_detail(self, request, pk=None, client_id=None):
        business = self.get_object()

        client = Client.objects.filter(business=business, id=client_id).first()
        if client is None:
            return error_response(message="Client not found", http_status=status.HTTP_404_NOT_FOUND)

        if request.method == "GET":
            return Response({"success": True, "client": ClientSerializer(client).data})

        ser = ClientSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        try:
            client = update_client(
                client=client,
                actor=request.user,
                data=dict(ser.validated_data),
                request=request,
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        return Response({"success": True, "client": ClientSerializer(client).data})

    # ======================================================
    # SUMMARY
    # ======================================================

    @extend_schema(request=None, responses={200: dict})
    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        business = self.get_object()
        return Response({"success": True, "summary": business_summary(business)})
