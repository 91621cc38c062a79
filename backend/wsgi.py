# backend/wsgi.py
"""
WSGI entrypoint (gunicorn backend.wsgi:application).

Servers run the production settings unless DJANGO_SETTINGS_MODULE says
otherwise; prod settings refuse to start without SECRET_KEY, DATABASE_URL,
ALLOWED_HOSTS, CORS/CSRF origins and BREVO_API_KEY.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.prod")

application = get_wsgi_application()
