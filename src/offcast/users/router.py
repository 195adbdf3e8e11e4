"""User management router: all /api/v1/users/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.database import get_session
from offcast.db.models import Account, User
from offcast.users.schemas import (
    AccountResponse,
    NicknameUpdateRequest,
    ProfileResponse,
    UserStatsResponse,
)
from offcast.users.service import (
    get_accounts,
    get_max_subscriber_count,
    get_user_stats,
    unlink_account,
    update_nickname,
    withdraw,
)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        provider=account.provider,
        profile_name=account.profile_name,
        profile_image=account.profile_image,
        subscriber_count=account.subscriber_count,
        created_at=account.created_at,
    )


async def _profile(db: AsyncSession, user: User) -> ProfileResponse:
    accounts = await get_accounts(db, user.id)
    return ProfileResponse(
        id=user.id,
        nickname=user.nickname,
        role=user.role,
        status=user.status,
        created_at=user.created_at,
        max_subscriber_count=await get_max_subscriber_count(db, user.id),
        accounts=[account_response(a) for a in accounts],
        stats=UserStatsResponse(**await get_user_stats(db, user.id)),
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Own profile with linked accounts and activity counts."""
    return await _profile(db, user)


@router.patch("/nickname", response_model=ProfileResponse)
async def change_nickname(
    body: NicknameUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    await update_nickname(db, user, body.nickname)
    await db.commit()
    return await _profile(db, user)


@router.delete("/me", status_code=204)
async def withdraw_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    """Withdraw (soft-delete) the account."""
    await withdraw(db, user)
    await db.commit()


# ---------------------------------------------------------------------------
# Linked accounts
# ---------------------------------------------------------------------------


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[AccountResponse]:
    return [account_response(a) for a in await get_accounts(db, user.id)]


@router.delete("/accounts/{provider}", status_code=204)
async def remove_account(
    provider: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> None:
    """Unlink a provider account. The last linked account cannot be removed."""
    await unlink_account(db, user.id, provider)
    await db.commit()
