# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite (no DATABASE_URL needed)
- Fast password hashing
- Throttles effectively disabled
- Outbound email unconfigured unless a test patches it in
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False
TESTING = True

SECRET_KEY = "test-secret-key-not-for-production"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        "anon": "10000/min",
        "user": "10000/min",
        "public_verify": "10000/min",
    },
}

APP_URL = "https://app.invoicemonk.test"

EMAIL_DELIVERY = {
    "BREVO": {
        "API_KEY": "",
        "SENDER_EMAIL": "noreply@invoicemonk.com",
        "TIMEOUT": 5,
    }
}
