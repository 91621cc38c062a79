# invoicing/models/__init__.py

from .credit_note import CreditNote
from .invoice import Invoice, InvoiceItem
from .payment import Payment
from .receipt import Receipt

__all__ = [
    "Invoice",
    "InvoiceItem",
    "Payment",
    "Receipt",
    "CreditNote",
]
