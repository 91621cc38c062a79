# billing/services/tier_catalog.py

"""
TIER CATALOG (SEED DATA)

Plain data only (no model imports) so the seed migration and the
seed_tier_limits command can both consume it.

Row format: (tier, feature, limit_value, limit_type, description)
"""

FEATURE_INVOICES_PER_MONTH = "invoices_per_month"
FEATURE_EXPORTS = "exports_enabled"
FEATURE_REPORTS = "reports_enabled"
FEATURE_AUDIT_LOGS_VISIBLE = "audit_logs_visible"
FEATURE_COMPLIANCE_EXPORTS = "compliance_exports_enabled"
FEATURE_API_ACCESS = "api_access"
FEATURE_VERIFICATION_PORTAL = "verification_portal"
FEATURE_BRANDING = "branding_enabled"
FEATURE_PREMIUM_TEMPLATES = "premium_templates"
FEATURE_WATERMARK_REQUIRED = "watermark_required"
FEATURE_CURRENCY_ACCOUNTS_LIMIT = "currency_accounts_limit"
FEATURE_RECEIPTS_LIMIT = "receipts_limit"
FEATURE_TEAM_MEMBERS_LIMIT = "team_members_limit"
FEATURE_ACCOUNTING = "accounting_enabled"
FEATURE_EXPENSES = "expenses_enabled"
FEATURE_CREDIT_NOTES = "credit_notes_enabled"
FEATURE_SUPPORT = "support_enabled"

COUNT = "count"
BOOLEAN = "boolean"
UNLIMITED = "unlimited"

_DESCRIPTIONS = {
    FEATURE_INVOICES_PER_MONTH: "Invoices issued per calendar month",
    FEATURE_EXPORTS: "Bulk CSV/JSON record exports",
    FEATURE_REPORTS: "Financial reports",
    FEATURE_AUDIT_LOGS_VISIBLE: "Full audit trail visibility",
    FEATURE_COMPLIANCE_EXPORTS: "Compliance reports (audit export, tax report)",
    FEATURE_API_ACCESS: "API access",
    FEATURE_VERIFICATION_PORTAL: "Public verification portal branding",
    FEATURE_BRANDING: "Custom branding on documents",
    FEATURE_PREMIUM_TEMPLATES: "Premium invoice templates",
    FEATURE_WATERMARK_REQUIRED: "Free-tier watermark on documents",
    FEATURE_CURRENCY_ACCOUNTS_LIMIT: "Currency accounts per business",
    FEATURE_RECEIPTS_LIMIT: "Receipts per calendar month",
    FEATURE_TEAM_MEMBERS_LIMIT: "Team members besides the owner",
    FEATURE_ACCOUNTING: "Accounting overview",
    FEATURE_EXPENSES: "Expense tracking",
    FEATURE_CREDIT_NOTES: "Credit notes",
    FEATURE_SUPPORT: "Support tickets",
}

_ALWAYS_ON = (FEATURE_ACCOUNTING, FEATURE_EXPENSES, FEATURE_CREDIT_NOTES, FEATURE_SUPPORT)


def _flag(enabled: bool):
    return (1 if enabled else 0, BOOLEAN)


_TIERS = {
    "starter": {
        FEATURE_INVOICES_PER_MONTH: (5, COUNT),
        FEATURE_EXPORTS: _flag(False),
        FEATURE_REPORTS: _flag(False),
        FEATURE_AUDIT_LOGS_VISIBLE: _flag(False),
        FEATURE_COMPLIANCE_EXPORTS: _flag(False),
        FEATURE_API_ACCESS: _flag(False),
        FEATURE_VERIFICATION_PORTAL: _flag(False),
        FEATURE_BRANDING: _flag(False),
        FEATURE_PREMIUM_TEMPLATES: _flag(False),
        FEATURE_WATERMARK_REQUIRED: _flag(True),
        FEATURE_CURRENCY_ACCOUNTS_LIMIT: (1, COUNT),
        FEATURE_RECEIPTS_LIMIT: (5, COUNT),
        FEATURE_TEAM_MEMBERS_LIMIT: (0, COUNT),
    },
    "starter_paid": {
        FEATURE_INVOICES_PER_MONTH: (None, UNLIMITED),
        FEATURE_EXPORTS: _flag(False),
        FEATURE_REPORTS: _flag(False),
        FEATURE_AUDIT_LOGS_VISIBLE: _flag(False),
        FEATURE_COMPLIANCE_EXPORTS: _flag(False),
        FEATURE_API_ACCESS: _flag(False),
        FEATURE_VERIFICATION_PORTAL: _flag(True),
        FEATURE_BRANDING: _flag(True),
        FEATURE_PREMIUM_TEMPLATES: _flag(False),
        FEATURE_WATERMARK_REQUIRED: _flag(False),
        FEATURE_CURRENCY_ACCOUNTS_LIMIT: (3, COUNT),
        FEATURE_RECEIPTS_LIMIT: (None, UNLIMITED),
        FEATURE_TEAM_MEMBERS_LIMIT: (0, COUNT),
    },
    "professional": {
        FEATURE_INVOICES_PER_MONTH: (None, UNLIMITED),
        FEATURE_EXPORTS: _flag(True),
        FEATURE_REPORTS: _flag(True),
        FEATURE_AUDIT_LOGS_VISIBLE: _flag(True),
        FEATURE_COMPLIANCE_EXPORTS: _flag(False),
        FEATURE_API_ACCESS: _flag(False),
        FEATURE_VERIFICATION_PORTAL: _flag(True),
        FEATURE_BRANDING: _flag(True),
        FEATURE_PREMIUM_TEMPLATES: _flag(True),
        FEATURE_WATERMARK_REQUIRED: _flag(False),
        FEATURE_CURRENCY_ACCOUNTS_LIMIT: (None, UNLIMITED),
        FEATURE_RECEIPTS_LIMIT: (None, UNLIMITED),
        FEATURE_TEAM_MEMBERS_LIMIT: (5, COUNT),
    },
    "business": {
        FEATURE_INVOICES_PER_MONTH: (None, UNLIMITED),
        FEATURE_EXPORTS: _flag(True),
        FEATURE_REPORTS: _flag(True),
        FEATURE_AUDIT_LOGS_VISIBLE: _flag(True),
        FEATURE_COMPLIANCE_EXPORTS: _flag(True),
        FEATURE_API_ACCESS: _flag(True),
        FEATURE_VERIFICATION_PORTAL: _flag(True),
        FEATURE_BRANDING: _flag(True),
        FEATURE_PREMIUM_TEMPLATES: _flag(True),
        FEATURE_WATERMARK_REQUIRED: _flag(False),
        FEATURE_CURRENCY_ACCOUNTS_LIMIT: (None, UNLIMITED),
        FEATURE_RECEIPTS_LIMIT: (None, UNLIMITED),
        FEATURE_TEAM_MEMBERS_LIMIT: (None, UNLIMITED),
    },
}


def tier_limit_rows():
    """
    Yields (tier, feature, limit_value, limit_type, description).
    """
    for tier, features in _TIERS.items():
        for feature, (value, limit_type) in features.items():
            yield tier, feature, value, limit_type, _DESCRIPTIONS[feature]
        for feature in _ALWAYS_ON:
            yield tier, feature, 1, BOOLEAN, _DESCRIPTIONS[feature]
