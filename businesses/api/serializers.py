# businesses/api/serializers.py

from rest_framework import serializers

from businesses.models import Business, BusinessMember, Client, CurrencyAccount
from permissions.roles import BUSINESS_ROLES, get_business_role


# ============================================================
# BUSINESS
# ============================================================


class BusinessSerializer(serializers.ModelSerializer):
    my_role = serializers.SerializerMethodField()

    class Meta:
        model = Business
        fields = [
            "id",
            "name",
            "legal_name",
            "tax_id",
            "cac_number",
            "vat_registration_number",
            "is_vat_registered",
            "contact_email",
            "contact_phone",
            "address",
            "logo_url",
            "jurisdiction",
            "default_currency",
            "invoice_prefix",
            "next_invoice_number",
            "my_role",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_my_role(self, obj):
        request = self.context.get("request")
        if request is None:
            return None
        return get_business_role(request.user, obj)


class BusinessWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    legal_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    tax_id = serializers.CharField(max_length=100, required=False, allow_blank=True)
    cac_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    vat_registration_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    is_vat_registered = serializers.BooleanField(required=False)
    contact_email = serializers.EmailField(required=False, allow_blank=True)
    contact_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)
    address = serializers.JSONField(required=False)
    logo_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    jurisdiction = serializers.CharField(max_length=2, required=False)
    default_currency = serializers.CharField(max_length=3, min_length=3, required=False)
    invoice_prefix = serializers.CharField(max_length=20, required=False, allow_blank=True)


# ============================================================
# MEMBERS
# ============================================================


class BusinessMemberSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)
    full_name = serializers.CharField(source="user.full_name", read_only=True)

    class Meta:
        model = BusinessMember
        fields = ["id", "user", "email", "full_name", "role", "invited_by", "created_at"]
        read_only_fields = fields


class AddMemberSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=sorted(BUSINESS_ROLES))


class ChangeRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=sorted(BUSINESS_ROLES))


# ============================================================
# CURRENCY ACCOUNTS
# ============================================================


class CurrencyAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = CurrencyAccount
        fields = ["id", "business", "currency", "name", "is_default", "created_at"]
        read_only_fields = fields


class CurrencyAccountCreateSerializer(serializers.Serializer):
    currency = serializers.CharField(max_length=3, min_length=3)
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    is_default = serializers.BooleanField(required=False, default=False)


# ============================================================
# CLIENTS
# ============================================================


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            "id",
            "business",
            "name",
            "email",
            "phone",
            "address",
            "contact_person",
            "tax_id",
            "cac_number",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "business", "created_at", "updated_at"]
        extra_kwargs = {"name": {"required": False}}
