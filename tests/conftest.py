"""
Wayfarer Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Relational tests run against a throwaway SQLite file (aiosqlite) with
       foreign keys on, so ON DELETE CASCADE and the unique constraints behave
       as they do in PostgreSQL. MongoDB and Redis are replaced by in-process
       fakes; the weather provider by httpx.MockTransport.

Fixture Hierarchy (all function-scoped):
    engine ─┬─ session_factory ── db_session
            │
    user / other_user / admin ── spot
            │
    spot_cache (FakeRedis) · documents (mock collections) · files (tmp dir)
    weather (disabled unless a test builds its own)
            │
    app ── test_client
"""

import os
import tempfile
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from decimal import Decimal

# Settings are read at import time; point them away from real backends first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-secret-key-for-wayfarer-suite"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["OPENWEATHER_API_KEY"] = ""
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="wayfarer_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import wayfarer.models  # noqa: F401
from wayfarer.database import Base, build_engine, build_session_factory
from wayfarer.documents import DocumentStore
from wayfarer.models import ROLE_ADMIN, ROLE_USER, TouristSpot, User
from wayfarer.security import AuthenticatedUser, create_access_token
from wayfarer.services.cache_service import SpotCache
from wayfarer.services.file_service import FileService
from wayfarer.services.weather_service import WeatherService


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeRedis:
    """The slice of redis.asyncio.Redis that SpotCache uses, backed by a dict."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.mget = AsyncMock(side_effect=self._mget)
        self.setex = AsyncMock(side_effect=self._setex)
        self.delete = AsyncMock(side_effect=self._delete)
        self.incr = AsyncMock(side_effect=self._incr)
        self.expire = AsyncMock(side_effect=self._expire)
        self.ping = AsyncMock(return_value=True)
        self.aclose = AsyncMock()

    async def _mget(self, *keys: str) -> List[Optional[str]]:
        return [self.store.get(key) for key in keys]

    async def _setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def _delete(self, key: str) -> int:
        self.ttls.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    async def _incr(self, key: str) -> int:
        value = int(self.store.get(key, "0")) + 1
        self.store[key] = str(value)
        return value

    async def _expire(self, key: str, ttl: int) -> bool:
        self.ttls[key] = ttl
        return key in self.store


def _make_cursor(docs) -> MagicMock:
    """Mimic `collection.find(...).sort(...).to_list(...)`."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def _auth_headers(user: AuthenticatedUser) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


# ══════════════════════════════════════════════════════════════════════════
# Relational Store
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'wayfarer.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def _create_user(session_factory, login: str, role: str) -> AuthenticatedUser:
    async with session_factory() as session:
        user = User(
            login=login,
            email=f"{login}@example.com",
            # never verified by these fixtures
            password_hash="not-a-real-hash",
            role=role,
        )
        session.add(user)
        await session.commit()
        return AuthenticatedUser(id=user.id, role=user.role)


@pytest_asyncio.fixture
async def user(session_factory) -> AuthenticatedUser:
    return await _create_user(session_factory, "traveler", ROLE_USER)


@pytest_asyncio.fixture
async def other_user(session_factory) -> AuthenticatedUser:
    return await _create_user(session_factory, "wanderer", ROLE_USER)


@pytest_asyncio.fixture
async def admin(session_factory) -> AuthenticatedUser:
    return await _create_user(session_factory, "curator", ROLE_ADMIN)


@pytest.fixture
def spot_data() -> Dict[str, Any]:
    return {
        "name": "Cristo Redentor",
        "description": "Art deco statue on top of Corcovado mountain.",
        "city": "Rio de Janeiro",
        "state": "RJ",
        "country": "Brazil",
        "lat": -22.951916,
        "lng": -43.210487,
        "address": "Parque Nacional da Tijuca",
    }


@pytest_asyncio.fixture
async def spot(session_factory, user, spot_data) -> TouristSpot:
    """A spot owned by `user`."""
    async with session_factory() as session:
        values = dict(spot_data)
        values["lat"] = Decimal(str(values["lat"]))
        values["lng"] = Decimal(str(values["lng"]))
        spot = TouristSpot(**values, created_by=user.id)
        session.add(spot)
        await session.commit()
        await session.refresh(spot)
        return spot


# ══════════════════════════════════════════════════════════════════════════
# Document Store, Cache, Weather, Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def spot_cache(fake_redis) -> SpotCache:
    return SpotCache(fake_redis, ttl=3600)


@pytest.fixture
def documents() -> DocumentStore:
    """
    DocumentStore over a mocked client. Tests configure
    documents.comments / documents.photos per case.
    """
    collections = {"comments": MagicMock(), "photos": MagicMock()}
    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections[name]
    client = MagicMock()
    client.__getitem__.return_value = database
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.close = AsyncMock()
    return DocumentStore(client=client, db_name="tourism_test")


@pytest.fixture
def files(tmp_path) -> FileService:
    return FileService(storage_root=str(tmp_path / "uploads"))


@pytest_asyncio.fixture
async def weather():
    """Weather lookup disabled (no API key); never touches the network."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    yield WeatherService(client, api_key="")
    await client.aclose()


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: Start of Image + JFIF marker + End of Image."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# Application
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(engine, session_factory, documents, spot_cache, weather, files):
    """
    A fresh app whose state holds the test backends. ASGITransport does not
    run the lifespan, so nothing here connects to real services.
    """
    from wayfarer.main import create_app

    application = create_app()
    application.state.engine = engine
    application.state.session_factory = session_factory
    application.state.documents = documents
    application.state.spot_cache = spot_cache
    application.state.weather = weather
    application.state.files = files
    return application


@pytest_asyncio.fixture
async def test_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_cursor():
    return _make_cursor


@pytest.fixture
def auth_headers():
    return _auth_headers
