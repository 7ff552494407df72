"""
Shared fixtures: an in-memory SQLite database replaces PostgreSQL, the Redis
cache is disconnected, and API requests go through httpx's ASGI transport.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import ecocoach.models  # noqa: F401
from ecocoach.api.deps import get_db
from ecocoach.database import Base
from ecocoach.main import app
from ecocoach.models import User, Vehicle
from ecocoach.services import cache
from ecocoach.services.trip_store import TripStore


@pytest.fixture(autouse=True)
def no_cache():
    cache.set_cache_client(None)
    yield
    cache.set_cache_client(None)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store(db):
    return TripStore(db)


@pytest_asyncio.fixture
async def user(db):
    user = User(email="driver@example.com", display_name="Test Driver", preferences={})
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db):
    user = User(email="other@example.com", display_name="Other Driver", preferences={})
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def hybrid_vehicle(db, user):
    vehicle = Vehicle(user_id=user.id, make="Toyota", model="Prius", year=2022, fuel_type="hybrid", is_primary=True)
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)
    return vehicle


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    return {"X-User-Id": str(user.id)}
