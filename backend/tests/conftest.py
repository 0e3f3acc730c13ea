"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Ensure mock auth and an in-process database for tests
os.environ.setdefault("AUTH_MOCK", "true")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("GEOCODER_ENABLED", "true")

import sharecycle.models  # noqa: E402, F401
from sharecycle.core.dependencies import get_db  # noqa: E402
from sharecycle.core.security import create_mock_access_token  # noqa: E402
from sharecycle.db.base import Base  # noqa: E402
from sharecycle.db.session import engine as app_engine  # noqa: E402
from sharecycle.main import app  # noqa: E402
from sharecycle.services.geocoding import Geocoder, get_geocoder  # noqa: E402

# Point at Postgres to run the suite against the production dialect.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

SAO_PAULO = (-23.5505, -46.6333)


def nominatim_handler(request: httpx.Request) -> httpx.Response:
    """Fake Nominatim: every search resolves to central Sao Paulo."""
    if request.url.path == "/search":
        return httpx.Response(
            200,
            json=[{"lat": str(SAO_PAULO[0]), "lon": str(SAO_PAULO[1]), "importance": 0.61}],
        )
    if request.url.path == "/reverse":
        return httpx.Response(
            200,
            json={
                "address": {
                    "road": "Praca da Se",
                    "house_number": "100",
                    "city": "Sao Paulo",
                    "state": "Sao Paulo",
                    "postcode": "01001-000",
                    "country": "Brasil",
                }
            },
        )
    return httpx.Response(404)


def failing_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, text="Service Unavailable")


def make_geocoder(handler=nominatim_handler) -> Geocoder:
    return Geocoder(
        "http://geocoder.test",
        transport=httpx.MockTransport(handler),
        enabled=True,
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh schema per test."""
    kwargs: dict = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    test_engine = create_async_engine(TEST_DATABASE_URL, **kwargs)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Async DB session with transaction rollback after each test."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def geocoder() -> Geocoder:
    return make_geocoder()


@pytest.fixture
def failing_geocoder() -> Geocoder:
    return make_geocoder(failing_handler)


@pytest.fixture
async def client(engine: AsyncEngine, geocoder: Geocoder) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client for the FastAPI app.

    Overrides get_db so every request runs in its own session against the
    per-test engine, committing on success like the real dependency.
    """
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _test_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_geocoder, None)
        await app_engine.dispose()


def make_token(sub: str = "test-sub", email: str = "test@example.com", **claims) -> str:
    """Generate a mock JWT for testing."""
    return create_mock_access_token(sub=sub, email=email, **claims)


def auth_headers(sub: str = "test-sub", email: str = "test@example.com", **claims) -> dict:
    """Return Authorization headers with a mock JWT."""
    token = make_token(sub=sub, email=email, **claims)
    return {"Authorization": f"Bearer {token}"}
