"""Report router: all /api/v1/reports/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import Report, User
from offcast.reports import service
from offcast.reports.schemas import ReportCreateRequest, ReportResponse

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])


def report_response(report: Report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        target_type=report.target_type,
        target_id=report.target_id,
        reason=report.reason,
        detail=report.detail,
        status=report.status,
        created_at=report.created_at,
    )


@router.post("", response_model=ReportResponse, status_code=201)
async def create_report(
    body: ReportCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReportResponse:
    report = await service.create_report(
        db,
        reporter_id=user.id,
        target_type=body.target_type,
        reason=body.reason.value,
        post_id=body.post_id,
        comment_id=body.comment_id,
        target_user_id=body.target_user_id,
        detail=body.detail,
    )
    await db.commit()
    return report_response(report)


@router.get("/my", response_model=Page[ReportResponse])
async def my_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    limit = clamp_limit(limit)
    reports, total = await service.list_my_reports(db, user.id, page=page, limit=limit)
    return Page[ReportResponse].build([report_response(r) for r in reports], total, page, limit)
