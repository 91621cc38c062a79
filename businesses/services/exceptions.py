# businesses/services/exceptions.py

"""
BUSINESS SERVICE ERRORS
"""


class BusinessServiceError(Exception):
    """Base exception for tenant / membership / client failures."""


class BusinessNotFoundError(BusinessServiceError):
    """Business does not exist or the caller cannot see it."""


class BusinessAccessDenied(BusinessServiceError):
    """Caller is not a member (or lacks the capability)."""


class MembershipError(BusinessServiceError):
    """Invalid membership change."""


class DuplicateMemberError(MembershipError):
    """User is already a member of the business."""


class LastOwnerError(MembershipError):
    """The last owner cannot be removed or demoted."""


class CurrencyAccountError(BusinessServiceError):
    """Invalid currency account operation."""


class DuplicateCurrencyAccountError(CurrencyAccountError):
    """The business already has an account in that currency."""


class ClientError(BusinessServiceError):
    """Invalid client operation."""
