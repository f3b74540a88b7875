"""Liveness and database readiness."""

from datetime import UTC, datetime

from fastapi import APIRouter

from parkshare.api import deps
from parkshare.core.config import get_settings
from parkshare.db.session import database_reachable

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(session: deps.SessionDep) -> dict[str, str]:
    """Report service identity and whether the database answers."""
    settings = get_settings()
    database_ok = await database_reachable(session)
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "ok" if database_ok else "unavailable",
        "service": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(UTC).isoformat(),
    }
