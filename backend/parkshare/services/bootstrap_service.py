"""Bootstrap helpers for default data."""

from __future__ import annotations

import logging

from parkshare.core.config import get_settings
from parkshare.core.security import get_password_hash
from parkshare.db.session import get_sessionmaker
from parkshare.models import User, UserRole, UserStatus
from parkshare.services.auth_service import get_user_by_email, normalize_email

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_FIRST = "Platform"
DEFAULT_ADMIN_LAST = "Admin"


async def ensure_default_admin() -> None:
    """Create the configured admin user if one does not yet exist."""

    settings = get_settings()
    if not settings.default_admin_email or not settings.default_admin_password:
        return
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        existing = await get_user_by_email(session, email=settings.default_admin_email)
        if existing is not None:
            return

        session.add(
            User(
                email=normalize_email(settings.default_admin_email),
                hashed_password=get_password_hash(settings.default_admin_password),
                first_name=DEFAULT_ADMIN_FIRST,
                last_name=DEFAULT_ADMIN_LAST,
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
            )
        )
        await session.commit()
        logger.info("Default admin %s created", normalize_email(settings.default_admin_email))
