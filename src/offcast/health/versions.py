"""Client app version registry and update checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from offcast.db.models import AppVersion
from offcast.errors import ConflictError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

# Reported as the latest release until a version is registered
INITIAL_VERSION = "1.0.0"


@dataclass(frozen=True)
class VersionInfo:
    current_version: str
    min_version: str
    is_force_update: bool
    description: str | None = None


@dataclass(frozen=True)
class Compatibility:
    is_compatible: bool
    needs_update: bool
    is_force_update: bool
    latest_version: str
    min_version: str


def _parts(version: str) -> list[int]:
    parts = []
    for part in version.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return parts


def compare_versions(a: str, b: str) -> int:
    """
    Compare dotted versions numerically, part by part.

    Missing and non-numeric parts count as 0, so ``"1.2"`` equals ``"1.2.0"``.
    Returns a positive number when ``a`` is newer, negative when older, 0 when equal.
    """
    pa, pb = _parts(a), _parts(b)
    for i in range(max(len(pa), len(pb))):
        x = pa[i] if i < len(pa) else 0
        y = pb[i] if i < len(pb) else 0
        if x != y:
            return 1 if x > y else -1
    return 0


async def get_latest_version(db: AsyncSession) -> VersionInfo | None:
    result = await db.execute(select(AppVersion).order_by(AppVersion.created_at.desc()).limit(1))
    latest = result.scalar_one_or_none()
    if latest is None:
        return None
    return VersionInfo(
        current_version=latest.version,
        min_version=latest.min_version or latest.version,
        is_force_update=latest.is_forced,
        description=latest.description,
    )


async def check_version_compatibility(db: AsyncSession, client_version: str) -> Compatibility:
    """
    Decide whether a client build may keep running.

    A client below the minimum is incompatible, and must update when the
    latest release is forced. With nothing registered every client passes.
    """
    info = await get_latest_version(db)
    if info is None:
        return Compatibility(
            is_compatible=True,
            needs_update=False,
            is_force_update=False,
            latest_version=client_version,
            min_version=client_version,
        )

    is_compatible = compare_versions(client_version, info.min_version) >= 0
    return Compatibility(
        is_compatible=is_compatible,
        needs_update=compare_versions(client_version, info.current_version) < 0,
        is_force_update=not is_compatible and info.is_force_update,
        latest_version=info.current_version,
        min_version=info.min_version,
    )


async def create_version(
    db: AsyncSession,
    version: str,
    *,
    description: str | None = None,
    is_forced: bool = False,
    min_version: str | None = None,
) -> AppVersion:
    existing = await db.execute(select(AppVersion.id).where(AppVersion.version == version))
    if existing.scalar_one_or_none() is not None:
        msg = f"Version {version} is already registered"
        raise ConflictError(msg)

    row = AppVersion(version=version, description=description, is_forced=is_forced, min_version=min_version)
    db.add(row)
    await db.flush()
    logger.info("app_version_registered", version=version, min_version=min_version, is_forced=is_forced)
    return row


async def get_all_versions(db: AsyncSession) -> list[AppVersion]:
    result = await db.execute(select(AppVersion).order_by(AppVersion.created_at.desc()))
    return list(result.scalars().all())
