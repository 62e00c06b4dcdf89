"""SQLAlchemy ORM model for moderation reports."""
from __future__ import annotations

import uuid

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID

from report_moderation.constants import OPEN_STATUSES, ReportStatus
from report_moderation.database import Base
from .base import TimestampMixin

_OPEN_STATUS_SQL = "status IN ({})".format(", ".join(f"'{status.value}'" for status in sorted(OPEN_STATUSES)))


class Report(TimestampMixin, Base):
    __tablename__ = "reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    reporter_id = Column(String(64), nullable=False, index=True)

    # "user" | "post" | "reel" | "story" | "comment"
    target_kind = Column(String(16), nullable=False, index=True)
    target_id = Column(String(64), nullable=False, index=True)

    # Cached for consequences (ban/restriction) even if the original target is deleted.
    target_user_id = Column(String(64), nullable=True, index=True)

    reason_code = Column(String(32), nullable=False, index=True)
    narrative = Column(Text, nullable=False)
    supplement = Column(String(500), nullable=True)
    severity = Column(String(16), nullable=False, server_default="medium", default="medium")

    status = Column(String(32), nullable=False, server_default=ReportStatus.PENDING.value, default=ReportStatus.PENDING.value, index=True)
    priority = Column(String(16), nullable=False, index=True)

    actions_taken = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    assigned_to = Column(String(64), nullable=True, index=True)
    submission_context = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    deleted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        # One open report per reporter/target; terminal reports do not count.
        Index(
            "uq_reports_open_target",
            "reporter_id",
            "target_kind",
            "target_id",
            unique=True,
            postgresql_where=text(_OPEN_STATUS_SQL),
            sqlite_where=text(_OPEN_STATUS_SQL),
        ),
        Index("ix_reports_created_at", "created_at"),
    )


__all__ = ["Report"]
