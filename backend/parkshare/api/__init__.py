"""HTTP surface of the booking engine."""

from fastapi import APIRouter

from parkshare.core.config import get_settings

from .v1 import router as v1_router


def build_api_router() -> APIRouter:
    """Mount the v1 resource routers under the configured prefix."""
    router = APIRouter(prefix=get_settings().api_v1_prefix)
    router.include_router(v1_router)
    return router


__all__ = ["build_api_router"]
