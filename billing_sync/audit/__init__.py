from .logger import AuditLogWriter

__all__ = ["AuditLogWriter"]
