"""Append-only audit trail for report submissions and decisions.

Entries are added to the caller's session so they commit atomically with the
report change they describe. After commit the same record is mirrored to the
``report_moderation.audit`` logger for external log shipping. Nothing in the
service reads these rows back to derive report state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import ReportAuditEntry
from ..models.base import utcnow

audit_logger = logging.getLogger("report_moderation.audit")


@dataclass(frozen=True)
class AuditEvent:
    event: str
    actor_id: str
    action: str | None = None
    status: str | None = None
    reason: str | None = None
    idempotency_key: str | None = None


def append_audit_entry(db: Session, report_id: UUID, event: AuditEvent) -> ReportAuditEntry:
    entry = ReportAuditEntry(
        report_id=report_id,
        actor_id=event.actor_id,
        event=event.event,
        action=event.action,
        status=event.status,
        reason=event.reason,
        idempotency_key=event.idempotency_key,
        created_at=utcnow(),
    )
    db.add(entry)
    return entry


def mirror_audit_entry(report_id: UUID, event: AuditEvent) -> None:
    audit_logger.info(
        "report=%s actor=%s event=%s action=%s status=%s reason=%s",
        report_id,
        event.actor_id,
        event.event,
        event.action or "-",
        event.status or "-",
        event.reason or "-",
    )


def list_audit_entries(db: Session, report_id: UUID) -> list[ReportAuditEntry]:
    """Return audit entries for a report in append order (for review tooling)."""

    stmt = (
        select(ReportAuditEntry)
        .where(ReportAuditEntry.report_id == report_id)
        .order_by(ReportAuditEntry.created_at.asc(), ReportAuditEntry.id.asc())
    )
    return list(db.scalars(stmt))


__all__ = ["AuditEvent", "append_audit_entry", "mirror_audit_entry", "list_audit_entries"]
