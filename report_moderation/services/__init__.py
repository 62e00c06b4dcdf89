"""Convenience exports for service layer."""
from .action_service import (
    ActionOutcome,
    apply_enforcement,
    assign_report,
    get_enforcements,
    retry_pending_enforcements,
    take_action,
    transition_report,
)
from .audit_service import AuditEvent, list_audit_entries
from .auth_service import (
    decode_actor_id,
    get_current_actor,
    get_notification_fanout,
    get_user_directory,
    require_moderator,
)
from .directory import SqlUserDirectory, UserDirectory
from .errors import (
    ConflictError,
    DependencyError,
    DuplicateReportError,
    InvalidActionError,
    InvalidTransitionError,
    ModerationError,
    ReportNotFoundError,
    ReportValidationError,
    TargetNotFoundError,
)
from .notification_service import NotificationFanout, NotificationMessage, NotificationType, SqlNotificationFanout
from .priority_service import normalize_severity, priority_of
from .report_service import get_report, list_reports, purge_report, submit_report, update_report
from .triage_service import queue_overview, triage_queue

__all__ = [
    "ActionOutcome",
    "apply_enforcement",
    "assign_report",
    "get_enforcements",
    "retry_pending_enforcements",
    "take_action",
    "transition_report",
    "AuditEvent",
    "list_audit_entries",
    "decode_actor_id",
    "get_current_actor",
    "get_notification_fanout",
    "get_user_directory",
    "require_moderator",
    "SqlUserDirectory",
    "UserDirectory",
    "ConflictError",
    "DependencyError",
    "DuplicateReportError",
    "InvalidActionError",
    "InvalidTransitionError",
    "ModerationError",
    "ReportNotFoundError",
    "ReportValidationError",
    "TargetNotFoundError",
    "NotificationFanout",
    "NotificationMessage",
    "NotificationType",
    "SqlNotificationFanout",
    "normalize_severity",
    "priority_of",
    "get_report",
    "list_reports",
    "purge_report",
    "submit_report",
    "update_report",
    "queue_overview",
    "triage_queue",
]
