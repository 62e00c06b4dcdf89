"""Moderator work queue ordering and dashboard counters."""
from __future__ import annotations

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import OPEN_STATUSES, PRIORITY_RANK, PriorityTier, ReportStatus
from ..models import Report
from .errors import ReportValidationError

_OPEN_STATUS_VALUES = sorted(status.value for status in OPEN_STATUSES)
_PRIORITY_ORDER = case({str(name): rank for name, rank in PRIORITY_RANK.items()}, value=Report.priority, else_=0)


def triage_queue(
    db: Session,
    *,
    assigned_to: str | None = None,
    unassigned_only: bool = False,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Report], int]:
    """Open reports, most urgent first and oldest first within a tier.

    Older reports in the same tier come first so nothing starves behind a
    steady stream of new submissions.
    """

    max_page_size = get_settings().max_page_size
    if page < 1:
        raise ReportValidationError("page must be at least 1")
    if not 1 <= page_size <= max_page_size:
        raise ReportValidationError(f"page_size must be between 1 and {max_page_size}")

    filters = [Report.deleted_at.is_(None), Report.status.in_(_OPEN_STATUS_VALUES)]
    if assigned_to:
        filters.append(Report.assigned_to == assigned_to)
    elif unassigned_only:
        filters.append(Report.assigned_to.is_(None))

    total = int(db.scalar(select(func.count(Report.id)).where(*filters)) or 0)
    stmt = (
        select(Report)
        .where(*filters)
        .order_by(_PRIORITY_ORDER.desc(), Report.created_at.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(db.scalars(stmt)), total


def queue_overview(db: Session) -> dict[str, dict[str, int] | int]:
    """Counts of live reports by status, and of open reports by priority."""

    by_status = {status.value: 0 for status in ReportStatus}
    rows = db.execute(
        select(Report.status, func.count(Report.id)).where(Report.deleted_at.is_(None)).group_by(Report.status)
    )
    for status_value, count in rows:
        by_status[status_value] = int(count)

    open_by_priority = {tier.value: 0 for tier in PriorityTier}
    rows = db.execute(
        select(Report.priority, func.count(Report.id))
        .where(Report.deleted_at.is_(None), Report.status.in_(_OPEN_STATUS_VALUES))
        .group_by(Report.priority)
    )
    for priority_value, count in rows:
        open_by_priority[priority_value] = int(count)

    return {
        "by_status": by_status,
        "open_by_priority": open_by_priority,
        "open_total": sum(open_by_priority.values()),
    }


__all__ = ["triage_queue", "queue_overview"]
