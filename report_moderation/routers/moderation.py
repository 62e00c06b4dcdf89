"""Moderator-only report triage and decision endpoints."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..schemas import (
    AuditEntryResponse,
    EnforcementResponse,
    QueueOverviewResponse,
    ReportActionRequest,
    ReportActionResponse,
    ReportAssignRequest,
    ReportDetail,
    ReportListResponse,
    ReportStatusRequest,
)
from ..services import (
    NotificationFanout,
    UserDirectory,
    assign_report,
    get_enforcements,
    get_notification_fanout,
    get_report,
    get_user_directory,
    list_audit_entries,
    list_reports,
    purge_report,
    queue_overview,
    require_moderator,
    take_action,
    transition_report,
    triage_queue,
)
from .reports import page_count

router = APIRouter(prefix="/moderation", tags=["moderation"])


def _report_page(reports, total: int, page: int, page_size: int) -> ReportListResponse:
    return ReportListResponse(
        reports=[ReportDetail.model_validate(report) for report in reports],
        total=total,
        page=page,
        pages=page_count(total, page_size),
    )


@router.get("/reports", response_model=ReportListResponse)
async def moderation_reports_endpoint(
    status_filter: str | None = Query(default=None, alias="status"),
    priority: str | None = None,
    target_kind: str | None = None,
    reporter_id: str | None = None,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> ReportListResponse:
    reports, total = list_reports(
        db,
        status=status_filter,
        priority=priority,
        target_kind=target_kind,
        reporter_id=reporter_id,
        page=page,
        page_size=page_size,
    )
    return _report_page(reports, total, page, page_size)


@router.get("/queue", response_model=ReportListResponse)
async def moderation_queue_endpoint(
    assigned_to: str | None = None,
    unassigned_only: bool = False,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> ReportListResponse:
    reports, total = triage_queue(
        db,
        assigned_to=assigned_to,
        unassigned_only=unassigned_only,
        page=page,
        page_size=page_size,
    )
    return _report_page(reports, total, page, page_size)


@router.get("/overview", response_model=QueueOverviewResponse)
async def moderation_overview_endpoint(
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> QueueOverviewResponse:
    return QueueOverviewResponse(**queue_overview(db))


@router.get("/users/{user_id}/reports", response_model=ReportListResponse)
async def moderation_user_reports_endpoint(
    user_id: str,
    status_filter: str | None = Query(default=None, alias="status"),
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> ReportListResponse:
    reports, total = list_reports(db, status=status_filter, target_user_id=user_id, page=page, page_size=page_size)
    return _report_page(reports, total, page, page_size)


@router.get("/reports/{report_id}", response_model=ReportDetail)
async def moderation_report_detail_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> ReportDetail:
    return ReportDetail.model_validate(get_report(db, report_id))


@router.get("/reports/{report_id}/audit", response_model=list[AuditEntryResponse])
async def moderation_report_audit_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> list[AuditEntryResponse]:
    get_report(db, report_id)
    return [AuditEntryResponse.model_validate(entry) for entry in list_audit_entries(db, report_id)]


@router.get("/reports/{report_id}/enforcements", response_model=list[EnforcementResponse])
async def moderation_report_enforcements_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> list[EnforcementResponse]:
    return [EnforcementResponse.model_validate(row) for row in get_enforcements(db, report_id)]


# Decision endpoints call collaborators with blocking retries, so they are
# plain functions and run in the threadpool instead of on the event loop.
@router.post("/reports/{report_id}/assign", response_model=ReportDetail)
def moderation_assign_endpoint(
    report_id: UUID,
    payload: ReportAssignRequest,
    db: Session = Depends(get_session),
    directory: UserDirectory = Depends(get_user_directory),
    moderator_id: str = Depends(require_moderator),
) -> ReportDetail:
    report = assign_report(db, report_id, payload.moderator_id, moderator_id, directory=directory)
    return ReportDetail.model_validate(report)


@router.post("/reports/{report_id}/status", response_model=ReportDetail)
def moderation_status_endpoint(
    report_id: UUID,
    payload: ReportStatusRequest,
    db: Session = Depends(get_session),
    fanout: NotificationFanout = Depends(get_notification_fanout),
    moderator_id: str = Depends(require_moderator),
) -> ReportDetail:
    report = transition_report(db, report_id, payload.status, moderator_id, reason=payload.reason, fanout=fanout)
    return ReportDetail.model_validate(report)


@router.post("/reports/{report_id}/actions", response_model=ReportActionResponse)
def moderation_action_endpoint(
    report_id: UUID,
    payload: ReportActionRequest,
    db: Session = Depends(get_session),
    directory: UserDirectory = Depends(get_user_directory),
    fanout: NotificationFanout = Depends(get_notification_fanout),
    moderator_id: str = Depends(require_moderator),
) -> ReportActionResponse:
    outcome = take_action(
        db,
        report_id,
        payload.action,
        payload.details,
        moderator_id,
        directory=directory,
        fanout=fanout,
    )
    return ReportActionResponse(
        report=ReportDetail.model_validate(outcome.report),
        enforcement_status=outcome.enforcement_status,
        notification_status=outcome.notification_status,
        notified=outcome.notified,
        replayed=outcome.replayed,
    )


@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def moderation_purge_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    moderator_id: str = Depends(require_moderator),
) -> Response:
    purge_report(db, report_id, actor_id=moderator_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
