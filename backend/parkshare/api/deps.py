"""Request-scoped dependencies: database session and the authenticated principal."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.core.config import get_settings
from parkshare.core.errors import ForbiddenError
from parkshare.core.security import decode_access_token
from parkshare.db.session import get_session
from parkshare.models.user import User, UserStatus

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{get_settings().api_v1_prefix}/auth/token"
)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
) -> User:
    """Resolve the bearer token to an active account."""
    try:
        claims = decode_access_token(token)
    except JWTError as exc:
        raise _unauthorized() from exc

    user = await session.get(User, claims.user_id)
    if user is None or user.status != UserStatus.ACTIVE:
        raise _unauthorized()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_current_admin(current_user: CurrentUser) -> User:
    if not current_user.is_admin:
        raise ForbiddenError("Administrator access required")
    return current_user


AdminUser = Annotated[User, Depends(get_current_admin)]
