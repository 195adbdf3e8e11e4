"""Client app version registry tests."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.db.models import UserRole, utcnow
from offcast.errors import ConflictError
from offcast.health.versions import (
    check_version_compatibility,
    compare_versions,
    create_version,
    get_all_versions,
    get_latest_version,
)


async def _release(db: AsyncSession, version: str, age_hours: int = 0, **options: object) -> None:
    row = await create_version(db, version, **options)
    row.created_at = utcnow() - timedelta(hours=age_hours)
    await db.commit()


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        ("1.0.0", "1.0.0", 0),
        ("1.2", "1.2.0", 0),
        ("1.10.0", "1.9.9", 1),
        ("0.9", "1.0", -1),
        ("1.x.3", "1.0.3", 0),
    ],
)
def test_compare_versions(a: str, b: str, expected: int) -> None:
    assert compare_versions(a, b) == expected


@pytest.mark.asyncio
async def test_nothing_registered_is_compatible(db: AsyncSession) -> None:
    assert await get_latest_version(db) is None
    result = await check_version_compatibility(db, "0.0.1")
    assert result.is_compatible is True
    assert result.needs_update is False
    assert result.latest_version == result.min_version == "0.0.1"


@pytest.mark.asyncio
async def test_latest_is_newest_row(db: AsyncSession) -> None:
    await _release(db, "1.0.0", age_hours=48)
    await _release(db, "1.1.0", age_hours=1, description="Bug fixes")

    info = await get_latest_version(db)
    assert info is not None
    assert info.current_version == "1.1.0"
    assert info.min_version == "1.1.0"
    assert [v.version for v in await get_all_versions(db)] == ["1.1.0", "1.0.0"]


@pytest.mark.asyncio
async def test_force_update_below_minimum(db: AsyncSession) -> None:
    await _release(db, "2.0.0", min_version="1.5.0", is_forced=True)

    old = await check_version_compatibility(db, "1.4.9")
    assert (old.is_compatible, old.needs_update, old.is_force_update) == (False, True, True)

    supported = await check_version_compatibility(db, "1.5.0")
    assert (supported.is_compatible, supported.needs_update, supported.is_force_update) == (True, True, False)

    current = await check_version_compatibility(db, "2.0")
    assert (current.is_compatible, current.needs_update) == (True, False)


@pytest.mark.asyncio
async def test_unforced_release_never_forces(db: AsyncSession) -> None:
    await _release(db, "2.0.0", min_version="1.5.0")
    result = await check_version_compatibility(db, "1.0.0")
    assert result.is_compatible is False
    assert result.is_force_update is False


@pytest.mark.asyncio
async def test_duplicate_version_rejected(db: AsyncSession) -> None:
    await _release(db, "1.0.0")
    with pytest.raises(ConflictError):
        await create_version(db, "1.0.0")


@pytest.mark.asyncio
async def test_latest_endpoint_defaults_to_initial_release(client: AsyncClient) -> None:
    response = await client.get("/api/v1/app/version")
    assert response.status_code == 200
    assert response.json() == {
        "current_version": "1.0.0",
        "min_version": "1.0.0",
        "is_force_update": False,
        "description": "Initial release",
    }


@pytest.mark.asyncio
async def test_admin_registers_then_clients_check(client: AsyncClient, make_user, auth_headers) -> None:
    admin = await make_user(role=UserRole.ADMIN)
    body = {"version": "1.3.0", "min_version": "1.2.0", "is_forced": True, "description": "Login fix"}
    created = await client.post("/api/v1/app/version", json=body, headers=auth_headers(admin))
    assert created.status_code == 201
    assert created.json()["version"] == "1.3.0"

    check = await client.get("/api/v1/app/version/check", params={"version": "1.1.0"})
    assert check.json() == {
        "is_compatible": False,
        "needs_update": True,
        "is_force_update": True,
        "latest_version": "1.3.0",
        "min_version": "1.2.0",
    }

    listed = await client.get("/api/v1/app/versions")
    assert [v["version"] for v in listed.json()] == ["1.3.0"]


@pytest.mark.asyncio
async def test_register_requires_admin(client: AsyncClient, make_user, auth_headers) -> None:
    user = await make_user()
    response = await client.post("/api/v1/app/version", json={"version": "9.9.9"}, headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_register_rejects_malformed_version(client: AsyncClient, make_user, auth_headers) -> None:
    admin = await make_user(role=UserRole.ADMIN)
    response = await client.post("/api/v1/app/version", json={"version": "latest"}, headers=auth_headers(admin))
    assert response.status_code == 422
