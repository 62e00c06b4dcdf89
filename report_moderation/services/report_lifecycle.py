"""Report status state machine and action-log helpers."""
from __future__ import annotations

from typing import Any

from ..constants import TERMINAL_STATUSES, ReportStatus
from ..models import Report
from ..models.base import utcnow
from .errors import InvalidTransitionError, ReportValidationError

ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.UNDER_REVIEW}),
    ReportStatus.UNDER_REVIEW: frozenset({ReportStatus.RESOLVED, ReportStatus.DISMISSED, ReportStatus.ESCALATED}),
    ReportStatus.ESCALATED: frozenset({ReportStatus.UNDER_REVIEW}),
    ReportStatus.RESOLVED: frozenset(),
    ReportStatus.DISMISSED: frozenset(),
}


def parse_status(value: str) -> ReportStatus:
    try:
        return ReportStatus((value or "").strip().lower())
    except ValueError as exc:
        raise ReportValidationError(f"Unknown report status: {value}") from exc


def is_terminal(report: Report) -> bool:
    return report.status in TERMINAL_STATUSES


def ensure_open(report: Report) -> None:
    if is_terminal(report):
        raise InvalidTransitionError(f"Report {report.id} is {report.status} and can no longer change")


def ensure_transition(report: Report, new_status: ReportStatus) -> None:
    ensure_open(report)
    current = ReportStatus(report.status)
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot move report from {current} to {new_status}")


def has_action_key(report: Report, idempotency_key: str) -> bool:
    return any(entry.get("idempotency_key") == idempotency_key for entry in report.actions_taken or [])


def append_action(
    report: Report,
    *,
    action: str,
    reason: str | None,
    actor_id: str,
    status: str,
    idempotency_key: str | None = None,
) -> dict[str, Any]:
    """Append an entry to ``actions_taken`` and set the resulting status together."""

    entry = {
        "action": action,
        "reason": reason,
        "actor_id": actor_id,
        "taken_at": utcnow().isoformat(),
        "status": status,
        "idempotency_key": idempotency_key,
    }
    # Reassign rather than mutate so the JSON column is flagged dirty.
    report.actions_taken = [*(report.actions_taken or []), entry]
    report.status = status
    return entry


__all__ = [
    "ALLOWED_TRANSITIONS",
    "parse_status",
    "is_terminal",
    "ensure_open",
    "ensure_transition",
    "has_action_key",
    "append_action",
]
