"""FAQ lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_, select

from offcast.db.models import Faq, FaqCategory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

# Labels shown in the app menu
CATEGORY_LABELS: dict[FaqCategory, str] = {
    FaqCategory.ACCOUNT: "계정",
    FaqCategory.CHANNEL: "채널/등급",
    FaqCategory.POST: "게시글/댓글",
    FaqCategory.REPORT: "신고/차단",
    FaqCategory.ETC: "기타",
}


def list_categories() -> list[tuple[str, str]]:
    """(value, label) pairs for every FAQ category."""
    return [(category.value, CATEGORY_LABELS.get(category, category.value)) for category in FaqCategory]


async def list_faqs(db: AsyncSession, category: str | None = None) -> list[Faq]:
    """Active FAQs grouped by category, then in display order."""
    query = select(Faq).where(Faq.is_active.is_(True))
    if category is not None:
        query = query.where(Faq.category == category)
    result = await db.execute(query.order_by(Faq.category, Faq.sort_order))
    return list(result.scalars().all())


async def search_faqs(db: AsyncSession, query: str) -> list[Faq]:
    """Case-insensitive substring match on question or answer."""
    term = query.strip()
    if not term:
        return []
    pattern = f"%{term}%"
    result = await db.execute(
        select(Faq)
        .where(Faq.is_active.is_(True), or_(Faq.question.ilike(pattern), Faq.answer.ilike(pattern)))
        .order_by(Faq.sort_order)
    )
    return list(result.scalars().all())
