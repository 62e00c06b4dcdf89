"""Schemas for report submission and moderation."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DETAILS_MAX_LENGTH


class ReportCreateRequest(BaseModel):
    target_kind: str = Field(max_length=16)
    target_id: str = Field(min_length=1, max_length=64)
    reason_code: str = Field(max_length=32)
    narrative: str
    supplement: str | None = None
    # A tier name or a 1-10 score; omitted means "medium".
    severity: str | int | None = None


class ReportCreateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: str
    priority: str
    created_at: datetime


class ReportActionEntry(BaseModel):
    action: str
    reason: str | None = None
    actor_id: str
    taken_at: datetime
    status: str
    idempotency_key: str | None = None


class ReportDetail(BaseModel):
    """Full report as seen by moderators."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reporter_id: str
    target_kind: str
    target_id: str
    target_user_id: str | None = None
    reason_code: str
    narrative: str
    supplement: str | None = None
    severity: str
    status: str
    priority: str
    assigned_to: str | None = None
    actions_taken: list[ReportActionEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ReporterReportSummary(BaseModel):
    """What reporters can see about their own reports."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    target_kind: str
    target_id: str
    reason_code: str
    status: str
    created_at: datetime
    updated_at: datetime


class ReportListResponse(BaseModel):
    reports: list[ReportDetail]
    total: int
    page: int
    pages: int


class ReporterReportList(BaseModel):
    reports: list[ReporterReportSummary]
    total: int
    page: int
    pages: int


class ReportActionRequest(BaseModel):
    action: str = Field(max_length=32)
    details: str


class ReportActionResponse(BaseModel):
    report: ReportDetail
    enforcement_status: str
    notification_status: str
    notified: int = 0
    replayed: bool = False


class ReportStatusRequest(BaseModel):
    status: str = Field(max_length=32)
    reason: str | None = Field(default=None, max_length=DETAILS_MAX_LENGTH)


class ReportAssignRequest(BaseModel):
    moderator_id: str = Field(min_length=1, max_length=64)


class QueueOverviewResponse(BaseModel):
    by_status: dict[str, int]
    open_by_priority: dict[str, int]
    open_total: int


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    report_id: UUID
    actor_id: str
    event: str
    action: str | None = None
    status: str | None = None
    reason: str | None = None
    created_at: datetime


class EnforcementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    action: str
    target_kind: str
    target_id: str
    target_user_id: str | None = None
    suspended_until: datetime | None = None
    status: str
    attempts: int
    last_error: str | None = None
    applied_at: datetime | None = None


class ModerationErrorResponse(BaseModel):
    kind: str
    detail: str


__all__ = [
    "ReportCreateRequest",
    "ReportCreateResponse",
    "ReportActionEntry",
    "ReportDetail",
    "ReporterReportSummary",
    "ReportListResponse",
    "ReporterReportList",
    "ReportActionRequest",
    "ReportActionResponse",
    "ReportStatusRequest",
    "ReportAssignRequest",
    "QueueOverviewResponse",
    "AuditEntryResponse",
    "EnforcementResponse",
    "ModerationErrorResponse",
]
