"""Test fixtures for the ParkShare backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from parkshare.core.config import get_settings
from parkshare.core.security import get_password_hash
from parkshare.db.base import Base
from parkshare.db.session import dispose_engine, get_sessionmaker
from parkshare.main import app
from parkshare.models import (
    Owner,
    ParkingSpace,
    PromoCode,
    PromoType,
    User,
    UserRole,
    UserStatus,
    UserVehicle,
)

PASSWORD = "Passw0rd!"


@dataclass
class Marketplace:
    """One owner with one space, a booker with vehicles, an outsider and an admin."""

    admin: User
    owner_user: User
    owner: Owner
    space: ParkingSpace
    booker: User
    vehicle: UserVehicle
    unverified_vehicle: UserVehicle
    outsider: User
    outsider_vehicle: UserVehicle


def _user(email: str, role: UserRole = UserRole.USER) -> User:
    return User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        first_name=email.split("@")[0].title(),
        last_name="Tester",
        role=role,
        status=UserStatus.ACTIVE,
    )


async def seed_marketplace(session: AsyncSession) -> Marketplace:
    admin = _user("admin@example.com", UserRole.ADMIN)
    owner_user = _user("owner@example.com", UserRole.OWNER)
    booker = _user("booker@example.com")
    outsider = _user("outsider@example.com")
    session.add_all([admin, owner_user, booker, outsider])
    await session.flush()

    owner = Owner(user_id=owner_user.id, business_name="Corner Lots")
    session.add(owner)
    await session.flush()

    space = ParkingSpace(
        owner_id=owner.id,
        space_number="A-1",
        latitude=40.7128,
        longitude=-74.0060,
        hourly_rate=Decimal("10.00"),
        daily_rate=Decimal("80.00"),
        monthly_rate=Decimal("600.00"),
    )
    vehicle = UserVehicle(
        user_id=booker.id,
        registration_number="ABC-123",
        make="Honda",
        model="Civic",
        is_verified=True,
    )
    unverified_vehicle = UserVehicle(
        user_id=booker.id,
        registration_number="NEW-001",
        make="Kia",
        model="Soul",
        is_verified=False,
    )
    outsider_vehicle = UserVehicle(
        user_id=outsider.id,
        registration_number="OUT-777",
        make="Ford",
        model="Focus",
        is_verified=True,
    )
    session.add_all([space, vehicle, unverified_vehicle, outsider_vehicle])
    await session.commit()

    return Marketplace(
        admin=admin,
        owner_user=owner_user,
        owner=owner,
        space=space,
        booker=booker,
        vehicle=vehicle,
        unverified_vehicle=unverified_vehicle,
        outsider=outsider,
        outsider_vehicle=outsider_vehicle,
    )


async def _add_promo(
    session: AsyncSession,
    *,
    code: str,
    promo_type: PromoType,
    discount_value: Decimal,
    valid_from: datetime,
    valid_to: datetime,
    max_discount_amount: Decimal | None = None,
    usage_limit_total: int | None = None,
    usage_count: int = 0,
    is_active: bool = True,
) -> PromoCode:
    promo = PromoCode(
        code=code,
        promo_type=promo_type,
        discount_value=discount_value,
        max_discount_amount=max_discount_amount,
        valid_from=valid_from,
        valid_to=valid_to,
        usage_limit_total=usage_limit_total,
        usage_count=usage_count,
        is_active=is_active,
    )
    session.add(promo)
    await session.commit()
    return promo


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def session(reset_database: None, db_url: str) -> AsyncIterator[AsyncSession]:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as db_session:
        yield db_session


@pytest_asyncio.fixture()
async def market(session: AsyncSession) -> Marketplace:
    return await seed_marketplace(session)


@pytest.fixture()
def make_promo(session: AsyncSession) -> Callable[..., Awaitable[PromoCode]]:
    """Factory persisting promo codes in the test session."""

    async def _make(**kwargs: Any) -> PromoCode:
        return await _add_promo(session, **kwargs)

    return _make


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, db_url: str
) -> AsyncIterator[dict[str, Any]]:
    """Yield an async client and the ids of the seeded marketplace."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as db_session:
        seeded = await seed_marketplace(db_session)
        context: dict[str, Any] = {
            "password": PASSWORD,
            "admin_email": seeded.admin.email,
            "owner_email": seeded.owner_user.email,
            "booker_email": seeded.booker.email,
            "outsider_email": seeded.outsider.email,
            "space_id": str(seeded.space.id),
            "vehicle_id": str(seeded.vehicle.id),
            "unverified_vehicle_id": str(seeded.unverified_vehicle.id),
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context


