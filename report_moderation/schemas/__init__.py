"""Pydantic schemas exposed by the API."""
from .reports import (
    AuditEntryResponse,
    EnforcementResponse,
    ModerationErrorResponse,
    QueueOverviewResponse,
    ReportActionEntry,
    ReportActionRequest,
    ReportActionResponse,
    ReportAssignRequest,
    ReportCreateRequest,
    ReportCreateResponse,
    ReportDetail,
    ReporterReportList,
    ReporterReportSummary,
    ReportListResponse,
    ReportStatusRequest,
)

__all__ = [
    "AuditEntryResponse",
    "EnforcementResponse",
    "ModerationErrorResponse",
    "QueueOverviewResponse",
    "ReportActionEntry",
    "ReportActionRequest",
    "ReportActionResponse",
    "ReportAssignRequest",
    "ReportCreateRequest",
    "ReportCreateResponse",
    "ReportDetail",
    "ReporterReportList",
    "ReporterReportSummary",
    "ReportListResponse",
    "ReportStatusRequest",
]
