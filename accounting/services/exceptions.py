# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class ExpenseValidationError(AccountingServiceError):
    """Bad expense payload."""


class ExpensePermissionError(AccountingServiceError):
    """Caller may not record expenses for this business / account."""
