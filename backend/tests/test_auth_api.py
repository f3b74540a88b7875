"""Authentication and bootstrap tests."""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

import pytest
from httpx import AsyncClient
from jose import JWTError
from sqlalchemy import select

from parkshare.core.config import get_settings
from parkshare.core.security import create_access_token, decode_access_token
from parkshare.db.session import get_sessionmaker
from parkshare.models import User, UserRole, UserStatus
from parkshare.services.bootstrap_service import ensure_default_admin

pytestmark = pytest.mark.asyncio


async def test_login_issues_token_with_role(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/auth/token",
        data={"username": "OWNER@example.com", "password": app_context["password"]},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert decode_access_token(body["access_token"]).role == "owner"


async def test_login_rejects_bad_password(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    response = await client.post(
        "/api/v1/auth/token",
        data={"username": app_context["booker_email"], "password": "wrong"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_UNAUTHORIZED"


async def test_suspended_account_cannot_use_token(
    app_context: dict[str, Any], db_url: str
) -> None:
    client: AsyncClient = app_context["client"]
    login = await client.post(
        "/api/v1/auth/token",
        data={"username": app_context["outsider_email"], "password": app_context["password"]},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    async with get_sessionmaker(db_url)() as session:
        user = (
            await session.execute(select(User).where(User.email == app_context["outsider_email"]))
        ).scalar_one()
        user.status = UserStatus.SUSPENDED
        await session.commit()

    response = await client.get("/api/v1/bookings", headers=headers)
    assert response.status_code == 401


async def test_expired_and_garbage_tokens(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    expired = create_access_token(uuid.uuid4(), role="user", expires_delta=timedelta(minutes=-5))
    with pytest.raises(JWTError):
        decode_access_token(expired)

    for token in (expired, "not-a-token"):
        response = await client.get(
            "/api/v1/bookings", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


async def test_default_admin_bootstrap(
    reset_database: None, db_url: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("DEFAULT_ADMIN_EMAIL", "Root@ParkShare.local")
    monkeypatch.setenv("DEFAULT_ADMIN_PASSWORD", "ChangeMe123!")
    get_settings.cache_clear()
    try:
        await ensure_default_admin()
        await ensure_default_admin()
    finally:
        monkeypatch.delenv("DEFAULT_ADMIN_EMAIL")
        monkeypatch.delenv("DEFAULT_ADMIN_PASSWORD")
        get_settings.cache_clear()

    async with get_sessionmaker(db_url)() as session:
        admins = (
            await session.execute(select(User).where(User.role == UserRole.ADMIN))
        ).scalars().all()
    assert [admin.email for admin in admins] == ["root@parkshare.local"]
