# public/urls.py
"""
PUBLIC API URLS (VERIFICATION)

Base path (mounted in backend/urls.py):
    /api/public/
"""

from __future__ import annotations

from django.urls import path

from public.views import VerifyInvoiceView, VerifyReceiptView, ViewInvoiceView

app_name = "public"

urlpatterns = [
    path("verify-invoice/", VerifyInvoiceView.as_view(), name="verify-invoice"),
    path("view-invoice/", ViewInvoiceView.as_view(), name="view-invoice"),
    path("verify-receipt/", VerifyReceiptView.as_view(), name="verify-receipt"),
]
