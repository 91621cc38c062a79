# reports/models/__init__.py

from .export_manifest import ExportManifest

__all__ = [
    "ExportManifest",
]
