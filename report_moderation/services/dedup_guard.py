"""Guard against a reporter holding two open reports on the same target.

The read below gives callers a clean error in the common case. The
authoritative check is the ``uq_reports_open_target`` partial unique index;
an insert that loses the race is translated by the report store.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..constants import OPEN_STATUSES
from ..models import Report
from .errors import DuplicateReportError

_OPEN_STATUS_VALUES = sorted(status.value for status in OPEN_STATUSES)


def find_open_report(db: Session, *, reporter_id: str, target_kind: str, target_id: str) -> Report | None:
    stmt = (
        select(Report)
        .where(
            Report.reporter_id == reporter_id,
            Report.target_kind == target_kind,
            Report.target_id == target_id,
            Report.status.in_(_OPEN_STATUS_VALUES),
        )
        .limit(1)
    )
    return db.scalar(stmt)


def check_duplicate(db: Session, *, reporter_id: str, target_kind: str, target_id: str) -> None:
    existing = find_open_report(db, reporter_id=reporter_id, target_kind=target_kind, target_id=target_id)
    if existing is not None:
        raise DuplicateReportError(f"You already have an open report ({existing.id}) on this {target_kind}")


__all__ = ["find_open_report", "check_duplicate"]
