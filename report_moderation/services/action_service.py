"""Moderator decisions on reports and the consequences they trigger.

A decision is recorded in one versioned report update together with an
``Enforcement`` row for any real-world consequence (suspension, restriction,
content removal). The consequence is applied through the user directory only
after that update commits, with bounded retries. If the directory stays
unavailable the row remains ``pending`` and :func:`retry_pending_enforcements`
picks it up later, so a recorded ban is never silently left unenforced.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import (
    CONTENT_KINDS,
    DETAILS_MAX_LENGTH,
    DETAILS_MIN_LENGTH,
    ENFORCED_ACTIONS,
    TERMINAL_STATUSES,
    ReportAction,
    ReportStatus,
)
from ..models import Enforcement, Report
from ..models.base import utcnow
from .audit_service import AuditEvent
from .directory import UserDirectory
from .errors import (
    DependencyError,
    InvalidActionError,
    ReportValidationError,
    TargetNotFoundError,
)
from .notification_service import NotificationFanout, NotificationMessage, NotificationType
from .report_lifecycle import append_action, ensure_open, ensure_transition, has_action_key, parse_status
from .report_service import get_report, update_report

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status a report lands in after each decision. Warnings and profile
# restrictions keep the report open for follow-up.
ACTION_RESULT_STATUS: dict[ReportAction, ReportStatus] = {
    ReportAction.NONE: ReportStatus.DISMISSED,
    ReportAction.WARNING: ReportStatus.UNDER_REVIEW,
    ReportAction.PROFILE_RESTRICTION: ReportStatus.UNDER_REVIEW,
    ReportAction.CONTENT_REMOVAL: ReportStatus.RESOLVED,
    ReportAction.TEMPORARY_BAN: ReportStatus.RESOLVED,
    ReportAction.PERMANENT_BAN: ReportStatus.RESOLVED,
}

_USER_ACTIONS = frozenset({ReportAction.TEMPORARY_BAN, ReportAction.PERMANENT_BAN, ReportAction.PROFILE_RESTRICTION})

_TARGET_MESSAGES: dict[ReportAction, tuple[NotificationType, str]] = {
    ReportAction.WARNING: (
        NotificationType.ACCOUNT_WARNING,
        "A moderator issued a warning on your account for violating the community guidelines.",
    ),
    ReportAction.TEMPORARY_BAN: (
        NotificationType.ACCOUNT_SUSPENDED,
        "Your account has been temporarily suspended for violating the community guidelines.",
    ),
    ReportAction.PERMANENT_BAN: (
        NotificationType.ACCOUNT_SUSPENDED,
        "Your account has been permanently suspended for violating the community guidelines.",
    ),
    ReportAction.PROFILE_RESTRICTION: (
        NotificationType.ACCOUNT_RESTRICTED,
        "Some features of your profile have been restricted following a moderation review.",
    ),
    ReportAction.CONTENT_REMOVAL: (
        NotificationType.CONTENT_REMOVED,
        "Content you posted was removed for violating the community guidelines.",
    ),
}


@dataclass
class ActionOutcome:
    report: Report
    # "not_required" | "applied" | "pending" | "failed"
    enforcement_status: str = "not_required"
    # "sent" | "skipped" | "failed"
    notification_status: str = "skipped"
    notified: int = 0
    replayed: bool = False


def action_key(report_id: UUID, action: str, actor_id: str) -> str:
    return f"{report_id}:{action}:{actor_id}"


def enforcement_key(report_id: UUID, action: str) -> str:
    return f"{report_id}:{action}"


def _parse_action(value: str) -> ReportAction:
    try:
        return ReportAction((value or "").strip().lower())
    except ValueError as exc:
        raise InvalidActionError(f"Unknown action: {value}") from exc


def _clean_details(details: str | None) -> str:
    text = (details or "").strip()
    if len(text) < DETAILS_MIN_LENGTH:
        raise ReportValidationError(f"details must be at least {DETAILS_MIN_LENGTH} characters")
    if len(text) > DETAILS_MAX_LENGTH:
        raise ReportValidationError(f"details must be at most {DETAILS_MAX_LENGTH} characters")
    return text


def _require_actor(actor_id: str | None) -> str:
    actor = (actor_id or "").strip()
    if not actor:
        raise ReportValidationError("actor_id is required")
    return actor


def _ensure_applicable(report: Report, action: ReportAction) -> None:
    if action in _USER_ACTIONS and not report.target_user_id:
        raise InvalidActionError(f"{action} requires a report whose target resolves to a user")
    if action == ReportAction.CONTENT_REMOVAL and report.target_kind not in CONTENT_KINDS:
        raise InvalidActionError("content_removal only applies to content reports")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _call_with_retries(fn: Callable[[], T], *, description: str, attempts: int | None = None) -> T:
    """Call ``fn`` retrying :class:`DependencyError` with exponential backoff."""

    settings = get_settings()
    max_attempts = max(1, attempts or settings.enforcement_max_attempts)
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except DependencyError as exc:
            if attempt == max_attempts:
                logger.error("%s failed after %d attempts: %s", description, max_attempts, exc)
                raise
            delay = settings.enforcement_backoff_seconds * (2 ** (attempt - 1))
            logger.warning("%s failed (attempt %d/%d): %s; retrying in %.2fs", description, attempt, max_attempts, exc, delay)
            if delay > 0:
                time.sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


def _dispatch(directory: UserDirectory, row: Enforcement) -> None:
    action = ReportAction(row.action)
    if action in (ReportAction.TEMPORARY_BAN, ReportAction.PERMANENT_BAN):
        directory.suspend(
            row.target_user_id,
            _as_utc(row.suspended_until),
            reason=row.reason,
            idempotency_key=row.idempotency_key,
        )
    elif action == ReportAction.PROFILE_RESTRICTION:
        directory.restrict(row.target_user_id, idempotency_key=row.idempotency_key)
    elif action == ReportAction.CONTENT_REMOVAL:
        directory.remove_content(row.target_kind, row.target_id, idempotency_key=row.idempotency_key)


def _commit_enforcement(db: Session, row: Enforcement) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record enforcement state for %s", row.idempotency_key)
        raise


def apply_enforcement(db: Session, row: Enforcement, directory: UserDirectory, *, attempts: int | None = None) -> str:
    """Apply one consequence through the directory and record the result."""

    if row.status != "pending":
        return row.status

    def _attempt() -> None:
        row.attempts = (row.attempts or 0) + 1
        _dispatch(directory, row)

    try:
        _call_with_retries(_attempt, description=f"Enforcement {row.idempotency_key}", attempts=attempts)
    except TargetNotFoundError as exc:
        row.status = "failed"
        row.last_error = str(exc)
        _commit_enforcement(db, row)
        logger.error("Enforcement %s cannot be applied: %s", row.idempotency_key, exc)
        return row.status
    except DependencyError as exc:
        row.last_error = str(exc)
        _commit_enforcement(db, row)
        return row.status

    row.status = "applied"
    row.applied_at = utcnow()
    row.last_error = None
    _commit_enforcement(db, row)
    logger.info("Enforcement %s applied", row.idempotency_key)
    return row.status


def _find_enforcement(db: Session, key: str) -> Enforcement | None:
    return db.scalar(select(Enforcement).where(Enforcement.idempotency_key == key))


def _notify(fanout: NotificationFanout, recipients: list[str], message: NotificationMessage) -> int:
    return _call_with_retries(
        lambda: fanout.notify(recipients, message),
        description=f"Notification {message.type}",
    )


def _notify_decision(fanout: NotificationFanout | None, report: Report, action: ReportAction) -> tuple[str, int]:
    if fanout is None:
        return "skipped", 0

    status = ReportStatus(report.status)
    messages: list[tuple[list[str], NotificationMessage]] = []
    if status in TERMINAL_STATUSES:
        outcome = "closed it without further action" if status == ReportStatus.DISMISSED else "took action"
        messages.append(
            (
                [report.reporter_id],
                NotificationMessage(
                    type=NotificationType.REPORT_REVIEWED,
                    content=f"Thanks for your report. A moderator reviewed it and {outcome}.",
                    payload={"report_id": str(report.id), "status": report.status},
                    email_subject="Your report was reviewed",
                ),
            )
        )
    target_message = _TARGET_MESSAGES.get(action)
    if target_message and report.target_user_id:
        type_, content = target_message
        messages.append(
            (
                [report.target_user_id],
                NotificationMessage(type=type_, content=content, payload={"action": action.value}),
            )
        )

    delivered = 0
    try:
        for recipients, message in messages:
            delivered += _notify(fanout, recipients, message)
    except DependencyError:
        return "failed", delivered
    return ("sent" if messages else "skipped"), delivered


def take_action(
    db: Session,
    report_id: UUID,
    action: str,
    details: str,
    actor_id: str,
    *,
    directory: UserDirectory,
    fanout: NotificationFanout | None = None,
) -> ActionOutcome:
    """Record a moderator decision on a report and apply its consequence.

    Input is fully validated before anything is written. Repeating a call
    with the same ``(report_id, action, actor_id)`` is a no-op that returns
    the current report, so retried requests never double-apply.
    """

    decision = _parse_action(action)
    reason = _clean_details(details)
    actor = _require_actor(actor_id)
    key = action_key(report_id, decision.value, actor)
    replayed = False

    def _mutate(report: Report) -> AuditEvent | None:
        nonlocal replayed
        if has_action_key(report, key):
            replayed = True
            return None
        replayed = False
        ensure_open(report)
        _ensure_applicable(report, decision)

        # Look up the consequence before touching the report so the query
        # cannot autoflush a half-applied change.
        consequence_key = enforcement_key(report.id, decision.value)
        needs_enforcement = decision in ENFORCED_ACTIONS and _find_enforcement(db, consequence_key) is None

        new_status = ACTION_RESULT_STATUS[decision]
        append_action(report, action=decision.value, reason=reason, actor_id=actor, status=new_status.value, idempotency_key=key)

        if needs_enforcement:
            until = None
            if decision == ReportAction.TEMPORARY_BAN:
                until = utcnow() + timedelta(days=get_settings().temporary_ban_days)
            db.add(
                Enforcement(
                    report_id=report.id,
                    action=decision.value,
                    target_kind=report.target_kind,
                    target_id=report.target_id,
                    target_user_id=report.target_user_id,
                    suspended_until=until,
                    reason=reason,
                    idempotency_key=consequence_key,
                )
            )
        return AuditEvent(
            event="report.action",
            actor_id=actor,
            action=decision.value,
            status=new_status.value,
            reason=reason,
            idempotency_key=key,
        )

    report = update_report(db, report_id, _mutate)
    outcome = ActionOutcome(report=report, replayed=replayed)

    if decision in ENFORCED_ACTIONS:
        row = _find_enforcement(db, enforcement_key(report.id, decision.value))
        if row is not None:
            # A replay still pushes a consequence that is waiting on the directory.
            outcome.enforcement_status = apply_enforcement(db, row, directory)

    if replayed:
        logger.info("Ignoring repeated %s on report %s by %s", decision.value, report_id, actor)
        return outcome

    outcome.notification_status, outcome.notified = _notify_decision(fanout, report, decision)
    logger.info(
        "Action %s taken on report %s by %s (status=%s, enforcement=%s)",
        decision.value,
        report_id,
        actor,
        report.status,
        outcome.enforcement_status,
    )
    return outcome


def _status_message(report: Report, status: ReportStatus) -> NotificationMessage | None:
    payload = {"report_id": str(report.id), "status": report.status}
    if status in TERMINAL_STATUSES:
        return NotificationMessage(
            type=NotificationType.REPORT_REVIEWED,
            content="Thanks for your report. A moderator has finished reviewing it.",
            payload=payload,
            email_subject="Your report was reviewed",
        )
    if status == ReportStatus.ESCALATED:
        return NotificationMessage(
            type=NotificationType.REPORT_ESCALATED,
            content="Your report has been passed to a senior moderator for a closer look.",
            payload=payload,
        )
    return None


def transition_report(
    db: Session,
    report_id: UUID,
    new_status: str,
    actor_id: str,
    *,
    reason: str | None = None,
    fanout: NotificationFanout | None = None,
) -> Report:
    """Move a report along the status state machine."""

    target = parse_status(new_status)
    actor = _require_actor(actor_id)
    note = (reason or "").strip() or None
    if note and len(note) > DETAILS_MAX_LENGTH:
        raise ReportValidationError(f"reason must be at most {DETAILS_MAX_LENGTH} characters")

    def _mutate(report: Report) -> AuditEvent:
        ensure_transition(report, target)
        append_action(report, action="status_change", reason=note, actor_id=actor, status=target.value)
        return AuditEvent(event="report.status", actor_id=actor, status=target.value, reason=note)

    report = update_report(db, report_id, _mutate)
    logger.info("Report %s moved to %s by %s", report_id, target.value, actor)

    message = _status_message(report, target)
    if fanout is not None and message is not None:
        try:
            _notify(fanout, [report.reporter_id], message)
        except DependencyError:
            logger.warning("Reporter notification for report %s not delivered", report_id)
    return report


def assign_report(
    db: Session,
    report_id: UUID,
    moderator_id: str,
    actor_id: str,
    *,
    directory: UserDirectory,
) -> Report:
    """Assign a moderator; pending and escalated reports move to under review."""

    moderator = _require_actor(moderator_id)
    actor = _require_actor(actor_id)
    role = directory.role_of(moderator)
    if role is None or role not in get_settings().moderator_role_set:
        raise ReportValidationError(f"{moderator} is not a moderator")

    def _mutate(report: Report) -> AuditEvent | None:
        ensure_open(report)
        status = ReportStatus(report.status)
        if report.assigned_to == moderator and status == ReportStatus.UNDER_REVIEW:
            return None
        report.assigned_to = moderator
        if status != ReportStatus.UNDER_REVIEW:
            ensure_transition(report, ReportStatus.UNDER_REVIEW)
            append_action(
                report,
                action="assigned",
                reason=f"Assigned to {moderator}",
                actor_id=actor,
                status=ReportStatus.UNDER_REVIEW.value,
            )
        return AuditEvent(event="report.assigned", actor_id=actor, status=report.status, reason=f"assigned_to={moderator}")

    return update_report(db, report_id, _mutate)


def retry_pending_enforcements(db: Session, directory: UserDirectory, *, limit: int = 50) -> int:
    """Re-apply consequences whose directory call has not succeeded yet.

    Returns the number of consequences applied during this sweep.
    """

    stmt = (
        select(Enforcement)
        .where(Enforcement.status == "pending")
        .order_by(Enforcement.created_at.asc())
        .limit(limit)
    )
    applied = 0
    for row in list(db.scalars(stmt)):
        if apply_enforcement(db, row, directory, attempts=1) == "applied":
            applied += 1
    if applied:
        logger.info("Enforcement sweep applied %d pending consequences", applied)
    return applied


def get_enforcements(db: Session, report_id: UUID) -> list[Enforcement]:
    get_report(db, report_id)
    stmt = select(Enforcement).where(Enforcement.report_id == report_id).order_by(Enforcement.created_at.asc())
    return list(db.scalars(stmt))


__all__ = [
    "ACTION_RESULT_STATUS",
    "ActionOutcome",
    "action_key",
    "enforcement_key",
    "apply_enforcement",
    "take_action",
    "transition_report",
    "assign_report",
    "retry_pending_enforcements",
    "get_enforcements",
]
