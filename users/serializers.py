from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

User = get_user_model()

MAX_REMINDER_STEPS = 10
MAX_REMINDER_TEMPLATE_LENGTH = 1000


# ---------------- REGISTER ----------------
class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={"input_type": "password"},
    )

    class Meta:
        model = User
        fields = [
            "email",
            "password",
            "first_name",
            "last_name",
        ]

    def validate_email(self, value):
        email = User.objects.normalize_email((value or "").strip())
        if User.objects.filter(email__iexact=email).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return email

    def create(self, validated_data):
        # Self-registration never grants platform_admin.
        return User.objects.create_user(
            email=validated_data["email"],
            password=validated_data["password"],
            first_name=validated_data.get("first_name", ""),
            last_name=validated_data.get("last_name", ""),
        )


# ---------------- LOGIN (INPUT ONLY) ----------------
class LoginSerializer(serializers.Serializer):
    """
    Input validation only.
    Authentication is handled in the view.
    """

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


# ---------------- EMAIL VERIFICATION ----------------
class EmailVerificationConfirmSerializer(serializers.Serializer):
    token = serializers.CharField()


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    is_platform_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "email_verified",
            "email_overdue_alerts",
            "email_payment_reminders",
            "reminder_days_before",
            "reminder_schedule",
            "overdue_reminder_enabled",
            "overdue_reminder_schedule",
            "reminder_email_template",
            "is_platform_admin",
        ]
        read_only_fields = ["id", "email", "role", "email_verified", "is_platform_admin"]

    @staticmethod
    def _day_list(value, *, low: int, high: int) -> list[int]:
        if value in (None, ""):
            return []
        if not isinstance(value, list):
            raise serializers.ValidationError("Must be a list of days")
        if len(value) > MAX_REMINDER_STEPS:
            raise serializers.ValidationError(f"At most {MAX_REMINDER_STEPS} reminder days")
        days = set()
        for day in value:
            if isinstance(day, bool) or not isinstance(day, int) or not low <= day <= high:
                raise serializers.ValidationError(f"Each day must be a whole number from {low} to {high}")
            days.add(day)
        return sorted(days, reverse=True)

    def validate_reminder_schedule(self, value):
        return self._day_list(value, low=1, high=14)

    def validate_overdue_reminder_schedule(self, value):
        return self._day_list(value, low=1, high=90)

    def validate_reminder_email_template(self, value):
        value = (value or "").strip()
        if len(value) > MAX_REMINDER_TEMPLATE_LENGTH:
            raise serializers.ValidationError(
                f"Must be {MAX_REMINDER_TEMPLATE_LENGTH} characters or less"
            )
        return value
