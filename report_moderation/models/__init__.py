"""Convenience exports for ORM models."""
from .audit import ReportAuditEntry
from .enforcement import Enforcement
from .notification import Notification
from .report import Report
from .user import ContentItem, User

__all__ = [
    "ContentItem",
    "Enforcement",
    "Notification",
    "Report",
    "ReportAuditEntry",
    "User",
]
