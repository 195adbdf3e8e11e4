"""Block router: all /api/v1/blocks/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.blocks import service
from offcast.blocks.schemas import BlockedUserResponse, BlockStatusResponse
from offcast.common.pagination import Page, clamp_limit
from offcast.database import get_session
from offcast.db.models import User, UserBlock

router = APIRouter(prefix="/api/v1/blocks", tags=["Blocks"])


def blocked_user_response(block: UserBlock) -> BlockedUserResponse:
    return BlockedUserResponse(
        user_id=block.blocked_user_id,
        nickname=block.blocked_user.nickname,
        blocked_at=block.created_at,
    )


@router.get("", response_model=Page[BlockedUserResponse])
async def list_blocked(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Page:
    limit = clamp_limit(limit)
    blocks, total = await service.get_blocked_users(db, user.id, page=page, limit=limit)
    return Page[BlockedUserResponse].build([blocked_user_response(b) for b in blocks], total, page, limit)


@router.post("/{user_id}", response_model=BlockedUserResponse, status_code=201)
async def block(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BlockedUserResponse:
    created = await service.block_user(db, user.id, user_id)
    await db.commit()
    return blocked_user_response(created)


@router.delete("/{user_id}", status_code=204)
async def unblock(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    await service.unblock_user(db, user.id, user_id)
    await db.commit()


@router.get("/{user_id}", response_model=BlockStatusResponse)
async def block_status(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> BlockStatusResponse:
    return BlockStatusResponse(user_id=user_id, blocked=await service.is_blocked(db, user.id, user_id))
