"""SQLAlchemy ORM model for the append-only report audit trail."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from report_moderation.database import Base
from .base import utcnow


class ReportAuditEntry(Base):
    __tablename__ = "report_audit_log"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(String(64), nullable=False, index=True)

    # "report.submitted" | "report.action" | "report.status" | "report.assigned" | "report.purged"
    event = Column(String(32), nullable=False)
    action = Column(String(32), nullable=True)
    status = Column(String(32), nullable=True)
    reason = Column(Text, nullable=True)
    idempotency_key = Column(String(200), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


__all__ = ["ReportAuditEntry"]
