"""Report submission endpoints for end users."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_session
from ..schemas import ReportCreateRequest, ReportCreateResponse, ReporterReportList, ReporterReportSummary
from ..services import (
    ReportNotFoundError,
    UserDirectory,
    get_current_actor,
    get_report,
    get_user_directory,
    list_reports,
    submit_report,
)

router = APIRouter(prefix="/reports", tags=["reports"])


def page_count(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size


@router.post("", response_model=ReportCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_report_endpoint(
    payload: ReportCreateRequest,
    request: Request,
    db: Session = Depends(get_session),
    directory: UserDirectory = Depends(get_user_directory),
    actor_id: str = Depends(get_current_actor),
) -> ReportCreateResponse:
    report = submit_report(
        db,
        directory,
        reporter_id=actor_id,
        target_kind=payload.target_kind,
        target_id=payload.target_id,
        reason_code=payload.reason_code,
        narrative=payload.narrative,
        supplement=payload.supplement,
        severity=payload.severity,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return ReportCreateResponse.model_validate(report)


@router.get("/mine", response_model=ReporterReportList)
async def my_reports_endpoint(
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_session),
    actor_id: str = Depends(get_current_actor),
) -> ReporterReportList:
    reports, total = list_reports(db, status=status_filter, reporter_id=actor_id, page=page, page_size=page_size)
    return ReporterReportList(
        reports=[ReporterReportSummary.model_validate(report) for report in reports],
        total=total,
        page=page,
        pages=page_count(total, page_size),
    )


@router.get("/{report_id}", response_model=ReporterReportSummary)
async def my_report_detail_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    directory: UserDirectory = Depends(get_user_directory),
    actor_id: str = Depends(get_current_actor),
) -> ReporterReportSummary:
    report = get_report(db, report_id)
    # Reporters only see their own reports; anything else looks missing.
    if report.reporter_id != actor_id and directory.role_of(actor_id) not in get_settings().moderator_role_set:
        raise ReportNotFoundError(f"Report {report_id} not found")
    return ReporterReportSummary.model_validate(report)


__all__ = ["router", "page_count"]
