# users/urls.py

from django.urls import path

from .views import (
    EmailVerificationConfirmView,
    EmailVerificationRequestView,
    LoginView,
    MeView,
    RegisterView,
)

app_name = "users"

urlpatterns = [
    # ---------------- PUBLIC AUTH ----------------
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path(
        "verify-email/confirm/",
        EmailVerificationConfirmView.as_view(),
        name="verify-email-confirm",
    ),
    # ---------------- AUTHENTICATED ----------------
    path("me/", MeView.as_view(), name="me"),
    path(
        "verify-email/request/",
        EmailVerificationRequestView.as_view(),
        name="verify-email-request",
    ),
]
