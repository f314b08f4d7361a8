#!/usr/bin/env python3
"""
Create the tables and the standard subscription packages.

Existing packages (matched by name) are left untouched.
"""
import asyncio

from sqlalchemy import select

from fitstudio.db.database import async_session_maker, close_engine, init_db
from fitstudio.models import Package

PACKAGES = [
    dict(name="Fit Basics", price=29.0, diet_plan_access=False, live_group_training_access=False, live_sessions_per_month=0),
    dict(name="Fit Plus", price=59.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=4),
    dict(name="Pro Transformation", price=99.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=8),
    dict(name="Elite Athlete", price=149.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=12),
]


async def seed_packages():
    await init_db()

    async with async_session_maker() as session:
        result = await session.execute(select(Package.name))
        existing = set(result.scalars().all())

        for data in PACKAGES:
            if data["name"] in existing:
                print(f"  = {data['name']}")
                continue
            session.add(Package(**data))
            print(f"  + {data['name']}")

        await session.commit()

    await close_engine()


if __name__ == "__main__":
    asyncio.run(seed_packages())
