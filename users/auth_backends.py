"""
PATH: users/auth_backends.py

AUTH BACKEND: Email login

Rules:
- Identifier is the email address (case-insensitive).
- Inactive users never authenticate.

Used by Django authenticate() and SimpleJWT's TokenObtainPairView
(which passes email=... because USERNAME_FIELD is "email").
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import BaseBackend

User = get_user_model()


class EmailBackend(BaseBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = (username or kwargs.get("email") or "").strip()
        if not identifier or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=identifier)
        except User.DoesNotExist:
            # Run the hasher anyway to keep timing flat for unknown emails.
            User().set_password(password)
            return None

        if not user.is_active:
            return None

        if user.check_password(password):
            return user

        return None

    def get_user(self, user_id):
        try:
            return User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None

