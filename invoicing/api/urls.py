# invoicing/api/urls.py

"""
INVOICING API URLS

Mounted at /api/ (backend/urls.py):
    /api/invoices/                      list / create drafts
    /api/invoices/<uuid>/               retrieve / update / delete drafts
    /api/invoices/<uuid>/issue/
    /api/invoices/<uuid>/record-payment/
    /api/invoices/<uuid>/void/
    /api/invoices/<uuid>/send/
    /api/receipts/                      read-only
    /api/credit-notes/                  read-only
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from invoicing.api.viewsets.documents import CreditNoteViewSet, ReceiptViewSet
from invoicing.api.viewsets.invoice import InvoiceViewSet

router = DefaultRouter()
router.register(r"invoices", InvoiceViewSet, basename="invoices")
router.register(r"receipts", ReceiptViewSet, basename="receipts")
router.register(r"credit-notes", CreditNoteViewSet, basename="credit-notes")

urlpatterns = [
    path("", include(router.urls)),
]
