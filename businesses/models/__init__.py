# businesses/models/__init__.py

from .business import Business
from .client import Client
from .currency_account import CurrencyAccount
from .membership import BusinessMember

__all__ = [
    "Business",
    "BusinessMember",
    "CurrencyAccount",
    "Client",
]
