"""Identity resolver and account store.

Maps an external (provider, provider_account_id) identity onto an internal
User. A provider identity belongs to at most one user; nicknames are chosen by
the user and never overwritten by provider data.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select

from offcast.common.formatting import format_author_info
from offcast.db.models import Account, Comment, Post, User, UserStatus, utcnow
from offcast.db.upsert import insert_ignore
from offcast.errors import BadRequestError, ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20


@dataclass
class OAuthProfile:
    """Normalized profile returned by a provider after a successful OAuth exchange."""

    provider: str
    provider_account_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    profile_name: str | None = None
    profile_image: str | None = None
    subscriber_count: int | None = None


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_active_user(db: AsyncSession, user_id: str) -> User | None:
    """A user that exists and has not withdrawn."""
    user = await get_user_by_id(db, user_id)
    if user is None or user.is_withdrawn:
        return None
    return user


async def _get_account(db: AsyncSession, provider: str, provider_account_id: str) -> Account | None:
    result = await db.execute(
        select(Account).where(
            Account.provider == provider,
            Account.provider_account_id == provider_account_id,
        )
    )
    return result.scalar_one_or_none()


async def get_accounts(db: AsyncSession, user_id: str) -> list[Account]:
    result = await db.execute(select(Account).where(Account.user_id == user_id).order_by(Account.created_at))
    return list(result.scalars().all())


async def get_account_by_provider(db: AsyncSession, user_id: str, provider: str) -> Account | None:
    result = await db.execute(select(Account).where(Account.user_id == user_id, Account.provider == provider))
    return result.scalars().first()


async def get_max_subscriber_count(db: AsyncSession, user_id: str) -> int:
    """Max subscriber count across all linked accounts; missing counts as 0."""
    result = await db.execute(
        select(func.max(func.coalesce(Account.subscriber_count, 0))).where(Account.user_id == user_id)
    )
    return result.scalar() or 0


async def get_user_providers(db: AsyncSession, user_id: str) -> list[str]:
    result = await db.execute(select(Account.provider).where(Account.user_id == user_id).distinct())
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Resolve / link
# ---------------------------------------------------------------------------


def apply_profile(account: Account, profile: OAuthProfile) -> None:
    """Refresh tokens and cached provider data in place. Never touches the user's nickname."""
    account.access_token = profile.access_token
    if profile.refresh_token is not None:
        account.refresh_token = profile.refresh_token
    account.expires_at = profile.expires_at
    if profile.profile_name is not None:
        account.profile_name = profile.profile_name
    if profile.profile_image is not None:
        account.profile_image = profile.profile_image
    if profile.subscriber_count is not None:
        account.subscriber_count = profile.subscriber_count


def _account_values(user_id: str, profile: OAuthProfile) -> dict[str, object]:
    return {
        "user_id": user_id,
        "provider": profile.provider,
        "provider_account_id": profile.provider_account_id,
        "access_token": profile.access_token,
        "refresh_token": profile.refresh_token,
        "expires_at": profile.expires_at,
        "profile_name": profile.profile_name,
        "profile_image": profile.profile_image,
        "subscriber_count": profile.subscriber_count,
    }


async def resolve_or_create(db: AsyncSession, profile: OAuthProfile) -> User | None:
    """
    Resolve an OAuth identity to a user, creating the user on first login.

    Returns None when the identity belongs to a withdrawn user.
    """
    account = await _get_account(db, profile.provider, profile.provider_account_id)
    if account is None:
        user = User()
        db.add(user)
        await db.flush()
        inserted = await insert_ignore(
            db,
            Account.__table__,
            _account_values(user.id, profile),
            ["provider", "provider_account_id"],
        )
        if inserted:
            logger.info("user_created", user_id=user.id, provider=profile.provider)
            return user
        # Lost a race with a concurrent first login for the same identity
        await db.delete(user)
        await db.flush()
        account = await _get_account(db, profile.provider, profile.provider_account_id)
        if account is None:
            msg = "Account vanished during concurrent creation"
            raise ConflictError(msg)

    owner = await get_user_by_id(db, account.user_id)
    if owner is None or owner.is_withdrawn:
        logger.info("login_rejected_withdrawn", provider=profile.provider, account_id=account.id)
        return None

    apply_profile(account, profile)
    await db.flush()
    logger.info("user_logged_in", user_id=owner.id, provider=profile.provider)
    return owner


async def link_account(db: AsyncSession, user_id: str, profile: OAuthProfile) -> Account:
    """
    Attach a provider identity to an existing user.

    Raises ConflictError without mutating anything if the identity already
    belongs to someone else. Re-linking one's own account refreshes it.
    """
    existing = await _get_account(db, profile.provider, profile.provider_account_id)
    if existing is not None:
        if existing.user_id != user_id:
            msg = "This account is already linked to another user"
            raise ConflictError(msg)
        apply_profile(existing, profile)
        await db.flush()
        return existing

    inserted = await insert_ignore(
        db,
        Account.__table__,
        _account_values(user_id, profile),
        ["provider", "provider_account_id"],
    )
    if not inserted:
        msg = "This account is already linked to another user"
        raise ConflictError(msg)

    logger.info("account_linked", user_id=user_id, provider=profile.provider)
    account = await _get_account(db, profile.provider, profile.provider_account_id)
    if account is None:
        msg = "Linked account not found"
        raise NotFoundError(msg)
    return account


async def unlink_account(db: AsyncSession, user_id: str, provider: str) -> None:
    """Remove a linked provider account. The last remaining account cannot be removed."""
    accounts = await get_accounts(db, user_id)
    targets = [a for a in accounts if a.provider == provider]
    if not targets:
        msg = "Linked account not found"
        raise NotFoundError(msg)
    if len(targets) == len(accounts):
        msg = "Cannot unlink the last linked account"
        raise BadRequestError(msg)

    await db.execute(delete(Account).where(Account.user_id == user_id, Account.provider == provider))
    await db.flush()
    logger.info("account_unlinked", user_id=user_id, provider=provider)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_nickname(db: AsyncSession, user: User, nickname: str) -> User:
    nickname = nickname.strip()
    if not NICKNAME_MIN_LENGTH <= len(nickname) <= NICKNAME_MAX_LENGTH:
        msg = f"Nickname must be {NICKNAME_MIN_LENGTH}-{NICKNAME_MAX_LENGTH} characters"
        raise BadRequestError(msg)

    taken = await db.execute(select(User.id).where(User.nickname == nickname, User.id != user.id))
    if taken.scalar_one_or_none() is not None:
        msg = "Nickname is already taken"
        raise ConflictError(msg)

    user.nickname = nickname
    await db.flush()
    return user


async def get_user_stats(db: AsyncSession, user_id: str) -> dict[str, int]:
    post_count = await db.scalar(
        select(func.count()).select_from(Post).where(Post.author_id == user_id, Post.deleted_at.is_(None))
    )
    comment_count = await db.scalar(
        select(func.count()).select_from(Comment).where(Comment.author_id == user_id, Comment.deleted_at.is_(None))
    )
    return {"post_count": post_count or 0, "comment_count": comment_count or 0}


async def withdraw(db: AsyncSession, user: User) -> User:
    """Soft-delete the user. Rows are kept; the identity can no longer log in."""
    user.status = UserStatus.WITHDRAWN.value
    user.deleted_at = utcnow()
    await db.flush()
    logger.info("user_withdrawn", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Author badges
# ---------------------------------------------------------------------------


async def get_author_infos(db: AsyncSession, user_ids: list[str]) -> dict[str, str]:
    """``provider|nickname|formatted count`` per user, using each user's top-subscriber account."""
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return {}
    users = (await db.execute(select(User.id, User.nickname).where(User.id.in_(ids)))).all()
    accounts = (await db.execute(select(Account).where(Account.user_id.in_(ids)))).scalars().all()

    top: dict[str, Account] = {}
    for account in accounts:
        current = top.get(account.user_id)
        if current is None or (account.subscriber_count or 0) > (current.subscriber_count or 0):
            top[account.user_id] = account

    infos: dict[str, str] = {}
    for user_id, nickname in users:
        account = top.get(user_id)
        infos[user_id] = format_author_info(
            account.provider if account else None,
            nickname,
            account.subscriber_count if account else 0,
        )
    return infos


async def get_author_info(db: AsyncSession, user_id: str) -> str:
    infos = await get_author_infos(db, [user_id])
    if user_id not in infos:
        msg = "User not found"
        raise NotFoundError(msg)
    return infos[user_id]
