# accounting/api/serializers/expenses.py

from rest_framework import serializers

from accounting.models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth).
    """

    currency_account_name = serializers.CharField(source="currency_account.name", read_only=True)

    class Meta:
        model = Expense
        fields = [
            "id",
            "business",
            "currency_account",
            "currency_account_name",
            "category",
            "description",
            "vendor",
            "amount",
            "currency",
            "exchange_rate_to_primary",
            "expense_date",
            "receipt_url",
            "notes",
            "user",
            "created_at",
        ]
        read_only_fields = fields


class ExpenseCreateSerializer(serializers.Serializer):
    """
    Input serializer (Swagger-visible).
    """

    business = serializers.UUIDField(required=False)
    currency_account = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    category = serializers.ChoiceField(choices=Expense.CATEGORY_CHOICES, required=False, default="other")
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    vendor = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    expense_date = serializers.DateField(required=False)
    exchange_rate_to_primary = serializers.DecimalField(
        max_digits=18,
        decimal_places=6,
        required=False,
        allow_null=True,
    )
    receipt_url = serializers.URLField(required=False, allow_blank=True, max_length=500)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("amount cannot be negative")
        return value
