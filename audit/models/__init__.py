# audit/models/__init__.py

from .audit_log import AuditEventType, AuditLog
from .retention_policy import RetentionPolicy

__all__ = [
    "AuditEventType",
    "AuditLog",
    "RetentionPolicy",
]
