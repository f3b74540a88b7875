"""Authentication endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from parkshare.api import deps
from parkshare.api.rate_limit import LOGIN_RATE_DEP
from parkshare.schemas.auth import Token
from parkshare.services.auth_service import (
    authenticate_user,
    issue_token,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/token",
    response_model=Token,
    summary="Obtain access token",
    dependencies=[LOGIN_RATE_DEP],
)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    session: deps.SessionDep,
) -> Token:
    """Validate credentials and issue a bearer token."""
    user = await authenticate_user(
        session, email=form_data.username, password=form_data.password
    )
    if not user:
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=issue_token(user))
