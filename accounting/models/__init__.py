# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Keep this file imports-only.
"""

from accounting.models.expense import Expense

__all__ = [
    "Expense",
]
