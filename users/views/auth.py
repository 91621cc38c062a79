"""
PATH: users/views/auth.py

AUTH ENDPOINTS

- POST /api/auth/register/                  create account (email unverified)
- POST /api/auth/login/                     email + password -> JWT pair
- POST /api/auth/verify-email/request/      send a signed verification link
- POST /api/auth/verify-email/confirm/      consume the signed token

Verification tokens are signed (django.core.signing), time-limited and bound
to the user's current email, so no token table is needed.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.core import signing
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from audit.models import AuditEventType
from audit.services.audit_service import log_audit_event_safely
from notifications.services.brevo import EmailDeliveryError, send_transactional_email
from users.serializers import (
    EmailVerificationConfirmSerializer,
    LoginSerializer,
    RegisterSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()

EMAIL_VERIFICATION_SALT = "users.email-verification"
EMAIL_VERIFICATION_MAX_AGE = 60 * 60 * 72


def make_email_verification_token(user) -> str:
    return signing.dumps(
        {"user_id": str(user.id), "email": user.email},
        salt=EMAIL_VERIFICATION_SALT,
    )


def _tokens_for(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


class RegisterView(APIView):
    permission_classes = [AllowAny]
    serializer_class = RegisterSerializer

    @extend_schema(
        request=RegisterSerializer,
        responses={201: UserSerializer},
        description="Register a new user account",
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        log_audit_event_safely(
            event_type=AuditEventType.USER_SIGNUP,
            entity_type="user",
            entity_id=user.id,
            actor=user,
            request=request,
        )

        return Response(
            {"success": True, "user": UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer

    @extend_schema(
        request=LoginSerializer,
        responses={200: dict, 401: dict},
        description="Authenticate with email and password; returns a JWT pair.",
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request=request,
            email=serializer.validated_data["email"],
            password=serializer.validated_data["password"],
        )

        if not user:
            return Response(
                {"success": False, "error": "Invalid credentials"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        log_audit_event_safely(
            event_type=AuditEventType.USER_LOGIN,
            entity_type="user",
            entity_id=user.id,
            actor=user,
            request=request,
        )

        return Response(
            {
                "success": True,
                "user": UserSerializer(user).data,
                **_tokens_for(user),
            }
        )


class EmailVerificationRequestView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        request=None,
        responses={200: dict, 500: dict},
        description="Email a signed verification link to the current user.",
    )
    def post(self, request):
        user = request.user
        if user.email_verified:
            return Response({"success": True, "message": "Email already verified"})

        token = make_email_verification_token(user)
        link = f"{settings.APP_URL}/verify-email?token={token}"

        try:
            send_transactional_email(
                to_email=user.email,
                to_name=user.full_name or user.email,
                subject="Verify your Invoicemonk email address",
                html_content=(
                    "<p>Confirm your email address to start issuing invoices.</p>"
                    f'<p><a href="{link}">Verify email</a></p>'
                ),
            )
        except EmailDeliveryError:
            logger.exception("Verification email failed", extra={"user_id": str(user.id)})
            return Response(
                {"success": False, "error": "Failed to send verification email"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response({"success": True, "message": "Verification email sent"})


class EmailVerificationConfirmView(APIView):
    permission_classes = [AllowAny]
    serializer_class = EmailVerificationConfirmSerializer

    @extend_schema(
        request=EmailVerificationConfirmSerializer,
        responses={200: dict, 400: dict},
        description="Confirm an email address from a signed token.",
    )
    def post(self, request):
        serializer = EmailVerificationConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            payload = signing.loads(
                serializer.validated_data["token"],
                salt=EMAIL_VERIFICATION_SALT,
                max_age=EMAIL_VERIFICATION_MAX_AGE,
            )
        except signing.SignatureExpired:
            return Response(
                {"success": False, "error": "Verification link has expired"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except signing.BadSignature:
            return Response(
                {"success": False, "error": "Invalid verification token"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = User.objects.filter(
            id=payload.get("user_id"),
            email__iexact=payload.get("email") or "",
        ).first()
        if user is None:
            return Response(
                {"success": False, "error": "Invalid verification token"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user.mark_email_verified()

        log_audit_event_safely(
            event_type=AuditEventType.EMAIL_VERIFIED,
            entity_type="user",
            entity_id=user.id,
            actor=user,
            request=request,
        )

        return Response({"success": True, "message": "Email verified"})
