# backend/tests/test_api_errors.py

from django.test import SimpleTestCase
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory
from rest_framework.views import APIView

from backend.api_errors import GENERIC_ERROR_MESSAGE


class _BrokenView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def get(self, request):
        raise RuntimeError("database on fire")


class _InvalidView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def get(self, request):
        raise ValidationError({"amount": ["Payment amount must be greater than 0"]})


class ApiExceptionHandlerTests(SimpleTestCase):
    """
    GUARANTEES:
    - Unhandled errors become a JSON 500 with a generic message
    - Internal error text never reaches the client
    - Validation errors keep the first message and the details
    """

    def setUp(self):
        self.factory = APIRequestFactory()

    def test_unhandled_error_is_generic_json_500(self):
        with self.assertLogs("backend.api_errors", level="ERROR") as logs:
            response = _BrokenView.as_view()(self.factory.get("/broken/"))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {"success": False, "error": GENERIC_ERROR_MESSAGE})
        self.assertNotIn("database on fire", str(response.data))
        self.assertIn("Unhandled API error", logs.output[0])

    def test_validation_error_envelope(self):
        response = _InvalidView.as_view()(self.factory.get("/invalid/"))

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["error"], "amount: Payment amount must be greater than 0")
        self.assertIn("amount", response.data["details"])
