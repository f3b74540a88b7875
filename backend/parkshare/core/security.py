"""Password hashing and bearer-token claims for ParkShare accounts."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from parkshare.core.config import get_settings


@dataclass(slots=True, frozen=True)
class TokenClaims:
    """Decoded access-token payload."""

    user_id: uuid.UUID
    role: str
    expires_at: datetime


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except (ValueError, TypeError):  # malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(
    user_id: uuid.UUID,
    *,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token whose subject is the user id and which carries the role."""
    settings = get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.now(UTC) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verify ``token`` and return its claims.

    Raises :class:`jose.JWTError` when the token does not verify or its
    subject is not a user id.
    """
    settings = get_settings()
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    try:
        return TokenClaims(
            user_id=uuid.UUID(str(payload["sub"])),
            role=str(payload.get("role", "")),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), UTC),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise JWTError("Malformed token claims") from exc
