"""Identity resolver and account store tests."""

import pytest
from sqlalchemy import select

from offcast.db.models import Account
from offcast.errors import BadRequestError, ConflictError, NotFoundError
from offcast.users.service import (
    OAuthProfile,
    get_accounts,
    get_author_info,
    get_max_subscriber_count,
    link_account,
    resolve_or_create,
    unlink_account,
    update_nickname,
    withdraw,
)


def _profile(provider="youtube", account_id="UC123", subscriber_count=1_000, name="Chan"):
    return OAuthProfile(
        provider=provider,
        provider_account_id=account_id,
        access_token="token-1",
        profile_name=name,
        subscriber_count=subscriber_count,
    )


class TestResolveOrCreate:
    async def test_first_login_creates_user_and_account(self, db):
        user = await resolve_or_create(db, _profile())
        assert user is not None
        accounts = await get_accounts(db, user.id)
        assert [(a.provider, a.provider_account_id) for a in accounts] == [("youtube", "UC123")]

    async def test_second_login_resolves_same_user(self, db):
        first = await resolve_or_create(db, _profile(subscriber_count=1_000))
        second = await resolve_or_create(db, _profile(subscriber_count=2_500))
        assert first.id == second.id
        assert await get_max_subscriber_count(db, first.id) == 2_500
        count = (await db.execute(select(Account))).scalars().all()
        assert len(count) == 1

    async def test_login_never_overwrites_nickname(self, db):
        user = await resolve_or_create(db, _profile(name="Original"))
        await update_nickname(db, user, "chosen")
        again = await resolve_or_create(db, _profile(name="Renamed Channel"))
        assert again.nickname == "chosen"

    async def test_withdrawn_identity_cannot_log_in(self, db):
        user = await resolve_or_create(db, _profile())
        await withdraw(db, user)
        assert await resolve_or_create(db, _profile()) is None


class TestLinking:
    async def test_link_second_provider(self, db):
        user = await resolve_or_create(db, _profile(subscriber_count=500))
        await link_account(db, user.id, _profile("twitch", "tw-1", subscriber_count=20_000))
        assert {a.provider for a in await get_accounts(db, user.id)} == {"youtube", "twitch"}
        assert await get_max_subscriber_count(db, user.id) == 20_000

    async def test_link_identity_owned_by_someone_else(self, db):
        owner = await resolve_or_create(db, _profile("twitch", "tw-1", subscriber_count=700))
        other = await resolve_or_create(db, _profile("youtube", "UC999"))
        intruder = OAuthProfile(
            provider="twitch",
            provider_account_id="tw-1",
            access_token="stolen-token",
            refresh_token="stolen-refresh",
            subscriber_count=5_000_000,
        )
        with pytest.raises(ConflictError):
            await link_account(db, other.id, intruder)

        account = (await db.execute(select(Account).where(Account.provider_account_id == "tw-1"))).scalar_one()
        await db.refresh(account)
        assert account.user_id == owner.id
        assert account.access_token == "token-1"
        assert account.refresh_token is None
        assert account.subscriber_count == 700
        assert [a.provider for a in await get_accounts(db, other.id)] == ["youtube"]

    async def test_relink_own_account_refreshes(self, db):
        user = await resolve_or_create(db, _profile(subscriber_count=10))
        account = await link_account(db, user.id, _profile(subscriber_count=99))
        assert account.subscriber_count == 99

    async def test_unlink_last_account_refused(self, db):
        user = await resolve_or_create(db, _profile())
        with pytest.raises(BadRequestError):
            await unlink_account(db, user.id, "youtube")

    async def test_unlink_unknown_provider(self, db):
        user = await resolve_or_create(db, _profile())
        with pytest.raises(NotFoundError):
            await unlink_account(db, user.id, "tiktok")

    async def test_unlink_one_of_two(self, db):
        user = await resolve_or_create(db, _profile())
        await link_account(db, user.id, _profile("tiktok", "tt-1"))
        await unlink_account(db, user.id, "tiktok")
        assert [a.provider for a in await get_accounts(db, user.id)] == ["youtube"]


class TestNickname:
    async def test_length_bounds(self, db):
        user = await resolve_or_create(db, _profile())
        with pytest.raises(BadRequestError):
            await update_nickname(db, user, "x")
        with pytest.raises(BadRequestError):
            await update_nickname(db, user, "x" * 21)

    async def test_taken(self, db):
        a = await resolve_or_create(db, _profile(account_id="A"))
        b = await resolve_or_create(db, _profile(account_id="B"))
        await update_nickname(db, a, "samename")
        with pytest.raises(ConflictError):
            await update_nickname(db, b, "samename")


class TestAuthorInfo:
    async def test_uses_top_subscriber_account(self, db):
        user = await resolve_or_create(db, _profile(subscriber_count=3_000))
        await update_nickname(db, user, "alice")
        await link_account(db, user.id, _profile("twitch", "tw-1", subscriber_count=150_000))
        assert await get_author_info(db, user.id) == "twitch|alice|15만"

    async def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            await get_author_info(db, "missing")
