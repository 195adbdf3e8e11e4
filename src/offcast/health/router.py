"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from offcast.auth.dependencies import get_admin_user
from offcast.config import Settings, get_settings
from offcast.database import get_session
from offcast.db.models import AppVersion, User
from offcast.health import versions
from offcast.health.schemas import (
    AppVersionCreateRequest,
    AppVersionResponse,
    CompatibilityResponse,
    VersionInfoResponse,
)
from offcast.redis_client import get_redis

router = APIRouter()
app_router = APIRouter(prefix="/api/v1/app", tags=["App versions"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database and Redis connectivity. Never raises; reports ``degraded`` instead."""
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["database"] = f"error: {exc}"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as exc:  # noqa: BLE001
        checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:  # noqa: B008
    return {"version": settings.app_version, "environment": settings.environment}


# ---------------------------------------------------------------------------
# Client app versions
# ---------------------------------------------------------------------------


def app_version_response(row: AppVersion) -> AppVersionResponse:
    return AppVersionResponse(
        id=row.id,
        version=row.version,
        min_version=row.min_version,
        is_forced=row.is_forced,
        description=row.description,
        created_at=row.created_at,
    )


@app_router.get("/version", response_model=VersionInfoResponse)
async def latest_app_version(db: AsyncSession = Depends(get_session)) -> VersionInfoResponse:  # noqa: B008
    """Latest registered release, or the initial release when none exists."""
    info = await versions.get_latest_version(db)
    if info is None:
        return VersionInfoResponse(
            current_version=versions.INITIAL_VERSION,
            min_version=versions.INITIAL_VERSION,
            is_force_update=False,
            description="Initial release",
        )
    return VersionInfoResponse(
        current_version=info.current_version,
        min_version=info.min_version,
        is_force_update=info.is_force_update,
        description=info.description,
    )


@app_router.get("/version/check", response_model=CompatibilityResponse)
async def check_app_version(
    version: str = Query(..., min_length=1, max_length=32),
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> CompatibilityResponse:
    result = await versions.check_version_compatibility(db, version)
    return CompatibilityResponse(
        is_compatible=result.is_compatible,
        needs_update=result.needs_update,
        is_force_update=result.is_force_update,
        latest_version=result.latest_version,
        min_version=result.min_version,
    )


@app_router.post("/version", response_model=AppVersionResponse, status_code=201)
async def register_app_version(
    body: AppVersionCreateRequest,
    _admin: User = Depends(get_admin_user),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> AppVersionResponse:
    row = await versions.create_version(
        db,
        body.version,
        description=body.description,
        is_forced=body.is_forced,
        min_version=body.min_version,
    )
    await db.commit()
    return app_version_response(row)


@app_router.get("/versions", response_model=list[AppVersionResponse])
async def list_app_versions(db: AsyncSession = Depends(get_session)) -> list[AppVersionResponse]:  # noqa: B008
    return [app_version_response(v) for v in await versions.get_all_versions(db)]
