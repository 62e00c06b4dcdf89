"""Report store: submission, lookup, listing and versioned updates."""
from __future__ import annotations

import logging
import uuid
from typing import Callable
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..config import get_settings
from ..constants import (
    NARRATIVE_MAX_LENGTH,
    PRIORITY_RANK,
    SUPPLEMENT_MAX_LENGTH,
    PriorityTier,
    ReasonCode,
    ReportStatus,
    TargetKind,
)
from ..models import Report
from ..models.base import utcnow
from .audit_service import AuditEvent, append_audit_entry, mirror_audit_entry
from .dedup_guard import check_duplicate, find_open_report
from .directory import UserDirectory
from .errors import (
    ConflictError,
    DuplicateReportError,
    InvalidTransitionError,
    ModerationError,
    ReportNotFoundError,
    ReportValidationError,
    TargetNotFoundError,
)
from .priority_service import coerce_severity, priority_of
from .report_lifecycle import is_terminal

logger = logging.getLogger(__name__)

ReportMutator = Callable[[Report], "AuditEvent | None"]

_PRIORITY_ORDER = case({str(name): rank for name, rank in PRIORITY_RANK.items()}, value=Report.priority, else_=0)


def _parse_enum(enum_cls, value: str | None, label: str):
    try:
        return enum_cls((value or "").strip().lower())
    except ValueError as exc:
        raise ReportValidationError(f"Unknown {label}: {value}") from exc


def _clean_text(value: str | None, *, field: str, max_length: int, required: bool) -> str | None:
    text = (value or "").strip()
    if not text:
        if required:
            raise ReportValidationError(f"{field} is required")
        return None
    if len(text) > max_length:
        raise ReportValidationError(f"{field} must be at most {max_length} characters")
    return text


def submit_report(
    db: Session,
    directory: UserDirectory,
    *,
    reporter_id: str,
    target_kind: str,
    target_id: str,
    reason_code: str,
    narrative: str,
    supplement: str | None = None,
    severity: str | int | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Report:
    """Validate, deduplicate, prioritise and persist a new report."""

    reporter_id = (reporter_id or "").strip()
    target_id = (target_id or "").strip()
    if not reporter_id:
        raise ReportValidationError("reporter_id is required")
    if not target_id:
        raise ReportValidationError("target_id is required")

    kind = _parse_enum(TargetKind, target_kind, "target kind")
    reason = _parse_enum(ReasonCode, reason_code, "reason code")
    safe_narrative = _clean_text(narrative, field="narrative", max_length=NARRATIVE_MAX_LENGTH, required=True)
    safe_supplement = _clean_text(supplement, field="supplement", max_length=SUPPLEMENT_MAX_LENGTH, required=False)
    stored_severity = coerce_severity(severity)

    if kind == TargetKind.USER and target_id == reporter_id:
        raise ReportValidationError("You cannot report yourself")

    if not directory.exists(kind.value, target_id):
        raise TargetNotFoundError(f"{kind.value} {target_id} not found")

    check_duplicate(db, reporter_id=reporter_id, target_kind=kind.value, target_id=target_id)

    now = utcnow()
    report = Report(
        id=uuid.uuid4(),
        reporter_id=reporter_id,
        target_kind=kind.value,
        target_id=target_id,
        target_user_id=directory.owner_of(kind.value, target_id),
        reason_code=reason.value,
        narrative=safe_narrative,
        supplement=safe_supplement,
        severity=stored_severity,
        status=ReportStatus.PENDING.value,
        priority=priority_of(reason.value, stored_severity).value,
        actions_taken=[],
        submission_context={
            "ip_address": ip_address,
            "user_agent": user_agent,
            "submitted_at": now.isoformat(),
        },
        created_at=now,
        updated_at=now,
    )
    event = AuditEvent(event="report.submitted", actor_id=reporter_id, status=report.status, reason=reason.value)

    db.add(report)
    append_audit_entry(db, report.id, event)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if find_open_report(db, reporter_id=reporter_id, target_kind=kind.value, target_id=target_id) is not None:
            raise DuplicateReportError(f"You already have an open report on this {kind.value}") from exc
        raise

    mirror_audit_entry(report.id, event)
    logger.info(
        "Report %s created by %s against %s %s (reason=%s, priority=%s)",
        report.id,
        reporter_id,
        kind.value,
        target_id,
        reason.value,
        report.priority,
    )
    return report


def _load_report(db: Session, report_id: UUID, *, refresh: bool = False) -> Report:
    report = db.get(Report, report_id, populate_existing=refresh)
    if report is None or report.deleted_at is not None:
        raise ReportNotFoundError(f"Report {report_id} not found")
    return report


def get_report(db: Session, report_id: UUID) -> Report:
    return _load_report(db, report_id)


def update_report(
    db: Session,
    report_id: UUID,
    mutator: ReportMutator,
    *,
    max_attempts: int | None = None,
) -> Report:
    """Apply ``mutator`` to a report under optimistic concurrency control.

    The mutator receives a freshly loaded report, changes it in place and
    returns the :class:`AuditEvent` describing the change, or ``None`` when
    there is nothing to do. A version conflict at commit rolls back, reloads
    and re-runs the mutator; after ``max_attempts`` conflicts a
    :class:`ConflictError` is raised.
    """

    attempts = max_attempts or get_settings().report_update_max_attempts
    for attempt in range(1, attempts + 1):
        report = _load_report(db, report_id, refresh=attempt > 1)
        try:
            event = mutator(report)
        except ModerationError:
            db.rollback()
            raise
        if event is None:
            return report

        report.updated_at = utcnow()
        append_audit_entry(db, report.id, event)
        try:
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.info("Version conflict updating report %s (attempt %d/%d)", report_id, attempt, attempts)
            continue

        mirror_audit_entry(report.id, event)
        return report

    raise ConflictError(f"Report {report_id} was modified concurrently; retry the request")


def list_reports(
    db: Session,
    *,
    status: str | None = None,
    priority: str | None = None,
    target_kind: str | None = None,
    reporter_id: str | None = None,
    target_user_id: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Report], int]:
    """Return one page of reports (highest priority, newest first) and the total."""

    max_page_size = get_settings().max_page_size
    if page < 1:
        raise ReportValidationError("page must be at least 1")
    if not 1 <= page_size <= max_page_size:
        raise ReportValidationError(f"page_size must be between 1 and {max_page_size}")

    filters = [Report.deleted_at.is_(None)]
    if status:
        filters.append(Report.status == _parse_enum(ReportStatus, status, "status").value)
    if priority:
        filters.append(Report.priority == _parse_enum(PriorityTier, priority, "priority").value)
    if target_kind:
        filters.append(Report.target_kind == _parse_enum(TargetKind, target_kind, "target kind").value)
    if reporter_id:
        filters.append(Report.reporter_id == reporter_id)
    if target_user_id:
        filters.append(Report.target_user_id == target_user_id)

    total = int(db.scalar(select(func.count(Report.id)).where(*filters)) or 0)
    stmt = (
        select(Report)
        .where(*filters)
        .order_by(_PRIORITY_ORDER.desc(), Report.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(db.scalars(stmt)), total


def purge_report(db: Session, report_id: UUID, *, actor_id: str, reason: str | None = None) -> Report:
    """Soft-delete a resolved or dismissed report."""

    def _mutate(report: Report) -> AuditEvent:
        if not is_terminal(report):
            raise InvalidTransitionError("Only resolved or dismissed reports can be purged")
        report.deleted_at = utcnow()
        return AuditEvent(event="report.purged", actor_id=actor_id, status=report.status, reason=reason)

    report = update_report(db, report_id, _mutate)
    logger.info("Report %s purged by %s", report_id, actor_id)
    return report


__all__ = [
    "ReportMutator",
    "submit_report",
    "get_report",
    "update_report",
    "list_reports",
    "purge_report",
]
