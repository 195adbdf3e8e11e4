"""Social router: linked platform accounts and their statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_current_user
from offcast.config import Settings, get_settings
from offcast.database import get_session
from offcast.db.models import User
from offcast.social import service
from offcast.social.schemas import AllStatsResponse, ProviderStats
from offcast.users.router import account_response
from offcast.users.schemas import AccountResponse
from offcast.users.service import get_accounts

router = APIRouter(prefix="/api/v1/social", tags=["Social"])


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[AccountResponse]:
    return [account_response(a) for a in await get_accounts(db, user.id)]


@router.get("/all", response_model=AllStatsResponse)
async def all_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AllStatsResponse:
    """Statistics from every linked platform; platforms that fail are omitted."""
    return await service.get_all_stats(db, settings, user.id)


@router.get("/{provider}/stats", response_model=ProviderStats)
async def provider_stats(
    provider: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> ProviderStats:
    return await service.get_stats_by_provider(db, settings, user.id, provider)


@router.post("/{provider}/sync", response_model=AccountResponse)
async def sync(
    provider: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> AccountResponse:
    """Re-fetch the provider profile and refresh the cached subscriber count."""
    account = await service.sync_account(db, settings, user.id, provider)
    await db.commit()
    await db.refresh(account)
    return account_response(account)
