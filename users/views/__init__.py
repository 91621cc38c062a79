from .auth import (
    EmailVerificationConfirmView,
    EmailVerificationRequestView,
    LoginView,
    RegisterView,
)
from .me import MeView

__all__ = [
    "RegisterView",
    "LoginView",
    "EmailVerificationRequestView",
    "EmailVerificationConfirmView",
    "MeView",
]
