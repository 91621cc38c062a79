# reports/api/serializers.py

from rest_framework import serializers

from reports.services.export_service import EXPORT_TYPES


class ReportRequestSerializer(serializers.Serializer):
    report_type = serializers.CharField(required=False, allow_blank=True, default="")
    year = serializers.CharField(required=False, allow_blank=True, default="")
    format = serializers.ChoiceField(choices=["json", "csv"], required=False, default="json")
    business_id = serializers.UUIDField(required=False, allow_null=True)
    currency_account_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ExportRequestSerializer(serializers.Serializer):
    export_type = serializers.ChoiceField(choices=list(EXPORT_TYPES))
    format = serializers.ChoiceField(choices=["csv", "json"], required=False, default="csv")
    business_id = serializers.UUIDField(required=False, allow_null=True)
    currency_account_id = serializers.UUIDField(required=False, allow_null=True)
    date_from = serializers.DateField(required=False, allow_null=True, input_formats=["iso-8601"])
    date_to = serializers.DateField(required=False, allow_null=True, input_formats=["iso-8601"])
    filters = serializers.DictField(required=False, default=dict)

    def validate(self, attrs):
        start, end = attrs.get("date_from"), attrs.get("date_to")
        if start and end and start > end:
            raise serializers.ValidationError({"date_to": "date_to must be on or after date_from"})
        return attrs
