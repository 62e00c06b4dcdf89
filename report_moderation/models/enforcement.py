"""SQLAlchemy ORM model for pending and applied report consequences."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID

from report_moderation.database import Base
from .base import TimestampMixin


class Enforcement(TimestampMixin, Base):
    __tablename__ = "report_enforcements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)

    action = Column(String(32), nullable=False)
    target_kind = Column(String(16), nullable=False)
    target_id = Column(String(64), nullable=False)
    target_user_id = Column(String(64), nullable=True)
    suspended_until = Column(DateTime(timezone=True), nullable=True)
    reason = Column(Text, nullable=True)

    # "<report_id>:<action>"; the directory applies each consequence once.
    idempotency_key = Column(String(200), nullable=False, unique=True)

    # "pending" | "applied" | "failed"
    status = Column(String(16), nullable=False, server_default="pending", default="pending", index=True)
    attempts = Column(Integer, nullable=False, server_default="0", default=0)
    last_error = Column(Text, nullable=True)
    applied_at = Column(DateTime(timezone=True), nullable=True)


__all__ = ["Enforcement"]
