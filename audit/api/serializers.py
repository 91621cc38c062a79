# audit/api/serializers.py

from rest_framework import serializers

from audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    actor_email = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            "id",
            "event_type",
            "entity_type",
            "entity_id",
            "actor",
            "actor_email",
            "actor_role",
            "business",
            "timestamp_utc",
            "source_ip",
            "user_agent",
            "previous_state",
            "new_state",
            "metadata",
            "event_hash",
        ]
        read_only_fields = fields

    def get_actor_email(self, obj):
        return obj.actor.email if obj.actor_id else None
