# billing/api/serializers.py

from rest_framework import serializers

from billing.models import Subscription


class SubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subscription
        fields = [
            "id",
            "business",
            "tier",
            "status",
            "current_period_start",
            "current_period_end",
            "created_at",
        ]
        read_only_fields = fields


class TierCheckQuerySerializer(serializers.Serializer):
    business_id = serializers.UUIDField(required=False)
    feature = serializers.CharField(max_length=100)
