# backend/settings/__init__.py
"""
PATH: backend/settings/__init__.py

Settings package entrypoint.

Nothing is imported here; DJANGO_SETTINGS_MODULE selects the concrete module:
- backend.settings.dev   (local development)
- backend.settings.test  (pytest / manage.py test)
- backend.settings.prod  (production)
"""
