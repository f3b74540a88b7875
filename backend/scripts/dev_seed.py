"""Seed a development owner, booker, space, weekly windows and a promo code."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select

from parkshare.core.security import get_password_hash
from parkshare.db.session import get_sessionmaker
from parkshare.models import (
    Owner,
    ParkingSpace,
    PromoCode,
    PromoType,
    SpaceAvailability,
    User,
    UserRole,
    UserVehicle,
)

OWNER_EMAIL = "owner@parkshare.local"
BOOKER_EMAIL = "driver@parkshare.local"
PASSWORD = "parkshare123"
PROMO_CODE = "WELCOME20"


async def seed() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing = await session.execute(select(User).where(User.email == OWNER_EMAIL))
        if existing.scalar_one_or_none() is not None:
            print(f"User {OWNER_EMAIL} already exists; nothing to seed.")
            return

        owner_user = User(
            email=OWNER_EMAIL,
            hashed_password=get_password_hash(PASSWORD),
            first_name="Olive",
            last_name="Owner",
            role=UserRole.OWNER,
        )
        booker = User(
            email=BOOKER_EMAIL,
            hashed_password=get_password_hash(PASSWORD),
            first_name="Dana",
            last_name="Driver",
        )
        session.add_all([owner_user, booker])
        await session.flush()

        owner = Owner(user_id=owner_user.id, business_name="Downtown Driveways")
        session.add(owner)
        await session.flush()

        space = ParkingSpace(
            owner_id=owner.id,
            space_number="A-1",
            description="Covered bay next to the station",
            latitude=40.7128,
            longitude=-74.0060,
            hourly_rate=Decimal("10.00"),
            daily_rate=Decimal("80.00"),
            monthly_rate=Decimal("600.00"),
        )
        session.add(space)
        session.add(
            UserVehicle(
                user_id=booker.id,
                registration_number="PS-1234",
                make="Toyota",
                model="Corolla",
                is_verified=True,
            )
        )
        await session.flush()

        # Weekdays 07:00-19:00.
        for day in range(1, 6):
            session.add(
                SpaceAvailability(
                    space_id=space.id,
                    day_of_week=day,
                    available_from="07:00",
                    available_to="19:00",
                )
            )

        now = datetime.now(UTC)
        session.add(
            PromoCode(
                code=PROMO_CODE,
                promo_type=PromoType.PERCENTAGE,
                discount_value=Decimal("20"),
                max_discount_amount=Decimal("5"),
                valid_from=now,
                valid_to=now + timedelta(days=90),
                usage_limit_total=100,
            )
        )
        await session.commit()
        print(f"Seeded owner {OWNER_EMAIL} and booker {BOOKER_EMAIL} / {PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed())
