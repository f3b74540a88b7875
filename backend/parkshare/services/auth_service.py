"""Credential checks and token issuance."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.security import create_access_token, verify_password
from parkshare.models.user import User, UserStatus

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(session: AsyncSession, *, email: str) -> User | None:
    result = await session.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def authenticate_user(
    session: AsyncSession, *, email: str, password: str
) -> User | None:
    """Return the account for valid credentials; suspended accounts never log in."""
    user = await get_user_by_email(session, email=email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    if user.status != UserStatus.ACTIVE:
        logger.info("Login refused for suspended account %s", user.id)
        return None
    return user


def issue_token(user: User) -> str:
    return create_access_token(user.id, role=user.role.value)
