"""
PATH: accounting/api/views/expenses.py

EXPENSES API

GET  /api/accounting/expenses/?business_id=<uuid>[&currency_account_id=<uuid>]
    - any member of the business (scoped, paginated)

POST /api/accounting/expenses/
    - requires expense.manage on the business
    - the expense takes its currency from the currency account
"""

from __future__ import annotations

import uuid

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounting.api.serializers.expenses import ExpenseCreateSerializer, ExpenseSerializer
from accounting.models import Expense
from accounting.services.exceptions import (
    AccountingServiceError,
    ExpensePermissionError,
)
from accounting.services.expense_service import create_expense
from backend.api_errors import error_response
from businesses.api.errors import business_error_response
from businesses.services.business_service import resolve_business_for_user
from businesses.services.exceptions import BusinessServiceError


class ExpenseListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ExpenseCreateSerializer
    queryset = Expense.objects.none()

    @extend_schema(
        tags=["accounting"],
        parameters=[
            OpenApiParameter(name="business_id", type=str, required=False),
            OpenApiParameter(name="currency_account_id", type=str, required=False),
        ],
        responses=ExpenseSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        try:
            business = resolve_business_for_user(
                user=request.user,
                business_id=request.query_params.get("business_id"),
            )
        except BusinessServiceError as exc:
            return business_error_response(exc)

        qs = (
            Expense.objects.filter(business=business)
            .select_related("currency_account")
            .order_by("-expense_date", "-created_at")
        )

        account_id = (request.query_params.get("currency_account_id") or "").strip()
        if account_id:
            try:
                qs = qs.filter(currency_account_id=uuid.UUID(account_id))
            except ValueError:
                return error_response(
                    message="Invalid currency_account_id",
                    http_status=status.HTTP_400_BAD_REQUEST,
                )

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ExpenseSerializer(page, many=True).data)
        return Response(ExpenseSerializer(qs, many=True).data)

    @extend_schema(
        tags=["accounting"],
        request=ExpenseCreateSerializer,
        responses={201: ExpenseSerializer, 400: dict, 403: dict},
    )
    def post(self, request, *args, **kwargs):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            business = resolve_business_for_user(user=request.user, business_id=data.get("business"))
        except BusinessServiceError as exc:
            return business_error_response(exc)

        try:
            expense = create_expense(
                business=business,
                user=request.user,
                currency_account_id=data["currency_account"],
                amount=data["amount"],
                category=data.get("category") or "other",
                description=data.get("description", ""),
                vendor=data.get("vendor") or "",
                expense_date=data.get("expense_date"),
                exchange_rate_to_primary=data.get("exchange_rate_to_primary"),
                receipt_url=data.get("receipt_url", ""),
                notes=data.get("notes") or "",
                request=request,
            )
        except ExpensePermissionError as exc:
            return error_response(message=str(exc), http_status=status.HTTP_403_FORBIDDEN)
        except AccountingServiceError as exc:
            return error_response(message=str(exc), http_status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {"success": True, "expense": ExpenseSerializer(expense).data},
            status=status.HTTP_201_CREATED,
        )
