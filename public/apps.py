# public/apps.py

"""
PUBLIC APP CONFIG

Anonymous (AllowAny) document verification:
- invoice verification portal
- recipient invoice view
- receipt verification

No models: every lookup goes through invoicing.services.verification_service.
"""

from django.apps import AppConfig


class PublicConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "public"
    verbose_name = "Public Verification"
