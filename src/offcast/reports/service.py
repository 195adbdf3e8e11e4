"""Content and user reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from offcast.common.pagination import offset_for
from offcast.db.models import Comment, Post, Report, ReportTargetType, User
from offcast.db.upsert import insert_ignore
from offcast.errors import BadRequestError, ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def _resolve_target(
    db: AsyncSession,
    target_type: ReportTargetType,
    post_id: str | None,
    comment_id: str | None,
    target_user_id: str | None,
) -> tuple[str, str | None]:
    """Validate the target. Returns (target id, author of the reported content)."""
    if target_type == ReportTargetType.POST:
        if not post_id:
            msg = "post_id is required when reporting a post"
            raise BadRequestError(msg)
        post = await db.get(Post, post_id)
        if post is None or post.deleted_at is not None:
            msg = "Post not found"
            raise NotFoundError(msg)
        return post.id, post.author_id

    if target_type == ReportTargetType.COMMENT:
        if not comment_id:
            msg = "comment_id is required when reporting a comment"
            raise BadRequestError(msg)
        comment = await db.get(Comment, comment_id)
        if comment is None or comment.deleted_at is not None:
            msg = "Comment not found"
            raise NotFoundError(msg)
        return comment.id, comment.author_id

    if not target_user_id:
        msg = "target_user_id is required when reporting a user"
        raise BadRequestError(msg)
    user = await db.get(User, target_user_id)
    if user is None or user.is_withdrawn:
        msg = "User not found"
        raise NotFoundError(msg)
    return user.id, user.id


async def create_report(
    db: AsyncSession,
    reporter_id: str,
    target_type: ReportTargetType,
    reason: str,
    post_id: str | None = None,
    comment_id: str | None = None,
    target_user_id: str | None = None,
    detail: str | None = None,
) -> Report:
    """
    File a report against a post, comment, or user.

    Raises:
        BadRequestError: Missing target id, self-report, or reporting own content.
        NotFoundError: Target missing or soft-deleted.
        ConflictError: This reporter already reported this target.
    """
    target_id, author_id = await _resolve_target(db, target_type, post_id, comment_id, target_user_id)

    if author_id == reporter_id:
        if target_type == ReportTargetType.USER:
            msg = "You cannot report yourself"
        else:
            msg = f"You cannot report your own {target_type.value.lower()}"
        raise BadRequestError(msg)

    inserted = await insert_ignore(
        db,
        Report.__table__,
        {
            "reporter_id": reporter_id,
            "target_type": target_type.value,
            "target_id": target_id,
            "post_id": target_id if target_type == ReportTargetType.POST else None,
            "comment_id": target_id if target_type == ReportTargetType.COMMENT else None,
            "target_user_id": target_id if target_type == ReportTargetType.USER else None,
            "reason": reason,
            "detail": detail,
        },
        ["reporter_id", "target_type", "target_id"],
    )
    if not inserted:
        msg = "You have already reported this"
        raise ConflictError(msg)

    report = await db.scalar(
        select(Report).where(
            Report.reporter_id == reporter_id,
            Report.target_type == target_type.value,
            Report.target_id == target_id,
        )
    )
    if report is None:
        msg = "Report not found"
        raise NotFoundError(msg)
    logger.info("report_created", report_id=report.id, target_type=target_type.value, target_id=target_id)
    return report


async def list_my_reports(
    db: AsyncSession, reporter_id: str, page: int = 1, limit: int = 20
) -> tuple[list[Report], int]:
    total = await db.scalar(select(func.count()).select_from(Report).where(Report.reporter_id == reporter_id))
    result = await db.execute(
        select(Report)
        .where(Report.reporter_id == reporter_id)
        .order_by(Report.created_at.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    return list(result.scalars().all()), total or 0
