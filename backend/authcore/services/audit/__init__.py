from .service import AuthAuditLog

__all__ = ["AuthAuditLog"]
