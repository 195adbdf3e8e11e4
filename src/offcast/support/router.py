"""Support router: FAQ and inquiry endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user, get_optional_user
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import Faq, FaqCategory, Inquiry, User
from offcast.support import faq, inquiry
from offcast.support.schemas import FaqCategoryResponse, FaqResponse, InquiryCreateRequest, InquiryResponse

router = APIRouter(prefix="/api/v1", tags=["Support"])


def faq_response(item: Faq) -> FaqResponse:
    return FaqResponse(
        id=item.id,
        category=item.category,
        question=item.question,
        answer=item.answer,
        sort_order=item.sort_order,
    )


def inquiry_response(item: Inquiry) -> InquiryResponse:
    return InquiryResponse(
        id=item.id,
        category=item.category,
        title=item.title,
        content=item.content,
        email=item.email,
        status=item.status,
        answer=item.answer,
        answered_at=item.answered_at,
        created_at=item.created_at,
    )


# ---------------------------------------------------------------------------
# FAQ (public)
# ---------------------------------------------------------------------------


@router.get("/faq", response_model=list[FaqResponse])
async def list_faqs(
    category: FaqCategory | None = None,
    db: AsyncSession = Depends(get_session),
) -> list[FaqResponse]:
    items = await faq.list_faqs(db, category.value if category else None)
    return [faq_response(i) for i in items]


@router.get("/faq/categories", response_model=list[FaqCategoryResponse])
async def faq_categories() -> list[FaqCategoryResponse]:
    return [FaqCategoryResponse(value=value, label=label) for value, label in faq.list_categories()]


@router.get("/faq/search", response_model=list[FaqResponse])
async def search_faqs(
    q: str = Query(..., min_length=1, max_length=100),
    db: AsyncSession = Depends(get_session),
) -> list[FaqResponse]:
    return [faq_response(i) for i in await faq.search_faqs(db, q)]


# ---------------------------------------------------------------------------
# Inquiries
# ---------------------------------------------------------------------------


@router.post("/inquiries", response_model=InquiryResponse, status_code=201)
async def create_inquiry(
    body: InquiryCreateRequest,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> InquiryResponse:
    """Open an inquiry as a member, or as a guest with an email."""
    item = await inquiry.create_inquiry(
        db,
        category=body.category.value,
        title=body.title,
        content=body.content,
        user_id=user.id if user else None,
        email=str(body.email) if body.email else None,
    )
    await db.commit()
    return inquiry_response(item)


@router.get("/inquiries/my", response_model=Page[InquiryResponse])
async def my_inquiries(
    page: int = Query(1, ge=1),
    limit: int = Query(inquiry.MY_INQUIRIES_LIMIT, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    limit = clamp_limit(limit, default=inquiry.MY_INQUIRIES_LIMIT)
    items, total = await inquiry.list_my_inquiries(db, user.id, page=page, limit=limit)
    return Page[InquiryResponse].build([inquiry_response(i) for i in items], total, page, limit)


@router.get("/inquiries/{inquiry_id}", response_model=InquiryResponse)
async def get_inquiry(
    inquiry_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> InquiryResponse:
    return inquiry_response(await inquiry.get_inquiry(db, inquiry_id, user.id))
