# accounting/api/views/__init__.py

from accounting.api.views.expenses import ExpenseListCreateView

__all__ = [
    "ExpenseListCreateView",
]
