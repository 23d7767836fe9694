"""Load demo mentors, a mentee and a week of open slots into a local database.

Safe to re-run: users are matched by email and slots by exact range.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter
from datetime import UTC, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

import mentorhub.modules  # noqa: F401
from mentorhub.core.config import get_settings
from mentorhub.core.database import SessionLocal, close_engine
from mentorhub.core.enums import RoleEnum
from mentorhub.core.security import hash_password
from mentorhub.modules.availability.repository import AvailabilityRepository
from mentorhub.modules.availability.service import AvailabilityService
from mentorhub.modules.identity.models import User
from mentorhub.modules.identity.repository import IdentityRepository
from mentorhub.modules.mentors.repository import MentorsRepository

logger = logging.getLogger("mentorhub.seed")

DEMO_PASSWORD = "DemoPass123!"
MENTEE = ("demo-mentee@mentorhub.dev", "Demo Mentee")
MENTORS = {
    "demo-mentor-backend@mentorhub.dev": (
        "Dana Backend",
        {
            "bio": "Staff engineer. Distributed systems, Python, career growth.",
            "domains": ["backend", "system-design"],
            "experience_years": 12,
            "hourly_rate": Decimal("80.00"),
            "company": "Example Corp",
            "position": "Staff Engineer",
            "languages": ["English"],
        },
    ),
    "demo-mentor-data@mentorhub.dev": (
        "Ravi Data",
        {
            "bio": "Data scientist helping analysts move into machine learning.",
            "domains": ["data-science", "machine-learning"],
            "experience_years": 7,
            "hourly_rate": Decimal("60.00"),
            "position": "Lead Data Scientist",
            "languages": ["English", "Hindi"],
        },
    ),
}
SLOT_DAYS_AHEAD = range(1, 6)
SLOT_HOURS = (10, 16)
SLOT_LENGTH = timedelta(hours=1)


def demo_slot_ranges(today: datetime) -> list[tuple[datetime, datetime]]:
    starts = (
        datetime.combine((today + timedelta(days=offset)).date(), time(hour=hour, tzinfo=UTC))
        for offset in SLOT_DAYS_AHEAD
        for hour in SLOT_HOURS
    )
    return [(start, start + SLOT_LENGTH) for start in starts]


async def upsert_user(identity: IdentityRepository, email: str, name: str, role: RoleEnum, tally: Counter) -> User:
    user = await identity.get_user_by_email(email)
    if user is not None:
        user.name, user.role, user.is_active = name, role, True
        tally["users updated"] += 1
        return user
    tally["users created"] += 1
    return await identity.create_user(
        email=email,
        name=name,
        password_hash=hash_password(DEMO_PASSWORD),
        role=role,
    )


async def seed(session: AsyncSession) -> Counter:
    tally: Counter = Counter()
    identity = IdentityRepository(session)
    mentors = MentorsRepository(session)
    availability = AvailabilityService(AvailabilityRepository(session))

    await upsert_user(identity, *MENTEE, RoleEnum.MENTEE, tally)

    for email, (name, profile_fields) in MENTORS.items():
        mentor = await upsert_user(identity, email, name, RoleEnum.MENTOR, tally)
        profile = await mentors.get_profile_by_user_id(mentor.id)
        if profile is None:
            await mentors.create_profile(mentor.id, **profile_fields)
            tally["profiles created"] += 1
        else:
            await mentors.update_profile(profile, **profile_fields)

        existing = {(slot.start_at, slot.end_at) for slot in await availability.repository.list_mentor_slots(mentor.id)}
        for start_at, end_at in demo_slot_ranges(datetime.now(UTC)):
            if (start_at, end_at) in existing:
                continue
            await availability.publish(mentor.id, start_at, end_at, mentor)
            tally["slots created"] += 1
    return tally


async def run(*, allow_production: bool) -> Counter:
    if get_settings().is_production and not allow_production:
        raise RuntimeError("Refusing to seed demo data in production without --allow-production")
    try:
        async with SessionLocal() as session, session.begin():
            return await seed(session)
    finally:
        await close_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed MentorHub demo data.")
    parser.add_argument("--allow-production", action="store_true", help="Seed even when APP_ENV is production.")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    try:
        tally = asyncio.run(run(allow_production=args.allow_production))
    except Exception:
        logger.exception("Demo seed failed")
        return 1

    for label, count in sorted(tally.items()):
        logger.info("%s: %d", label, count)
    logger.info("Demo accounts use password %s", DEMO_PASSWORD)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
