"""
Shared fixtures.

Service and API tests run against a throwaway SQLite file through aiosqlite.
The environment is set before ``fitstudio`` is imported so the module-level
engine never tries to reach PostgreSQL.
"""
import os
from datetime import datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitstudio.db.database import create_engine, get_db, init_db
from fitstudio.models import Client, LiveSession, Package, SessionClient


PACKAGES = [
    dict(name="Fit Basics", price=29.0, diet_plan_access=False, live_group_training_access=False, live_sessions_per_month=0),
    dict(name="Fit Plus", price=59.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=4),
    dict(name="Pro Transformation", price=99.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=8),
    dict(name="Elite Athlete", price=149.0, diet_plan_access=True, live_group_training_access=True, live_sessions_per_month=12),
]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'studio.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def seed(session_maker):
    """Packages, and twelve "pro" clients plus one client of each other tier.

    Returns ids keyed by a readable label.
    """
    async with session_maker() as session:
        packages = {}
        for data in PACKAGES:
            package = Package(**data)
            session.add(package)
            packages[data["name"]] = package
        await session.flush()

        clients = {}
        for i in range(1, 13):
            client = Client(
                name=f"Pro Client {i}",
                email=f"pro{i}@example.com",
                package_id=packages["Pro Transformation"].id,
            )
            session.add(client)
            clients[f"pro{i}"] = client
        for label, package_name in [
            ("basic", "Fit Basics"),
            ("plus", "Fit Plus"),
            ("elite", "Elite Athlete"),
        ]:
            client = Client(
                name=f"{package_name} Client",
                email=f"{label}@example.com",
                package_id=packages[package_name].id,
            )
            session.add(client)
            clients[label] = client
        no_package = Client(name="No Package Client", email="none@example.com")
        session.add(no_package)
        clients["none"] = no_package
        await session.commit()

        return {
            "packages": {name: package.id for name, package in packages.items()},
            "clients": {label: client.id for label, client in clients.items()},
        }


@pytest_asyncio.fixture
async def make_session(session_maker):
    """Create a live session, optionally with clients already seated."""

    async def _make(
        package_plan: str | None = "pro",
        max_capacity: int = 10,
        client_ids: list[int] = (),
        status: str = "upcoming",
    ) -> int:
        async with session_maker() as session:
            live_session = LiveSession(
                title="Morning HIIT",
                session_type="hiit",
                package_plan=package_plan,
                scheduled_at=datetime.utcnow() + timedelta(days=1),
                max_capacity=max_capacity,
                current_capacity=len(client_ids),
                status=status,
            )
            session.add(live_session)
            await session.flush()
            for position, client_id in enumerate(client_ids, start=1):
                session.add(SessionClient(session_id=live_session.id, client_id=client_id, position=position))
            await session.commit()
            return live_session.id

    return _make


@pytest_asyncio.fixture
async def client(engine, session_maker):
    """HTTP client against the app with ``get_db`` pointed at the test database."""
    from fitstudio.main import create_app

    app = create_app()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
