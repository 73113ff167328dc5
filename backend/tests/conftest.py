"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["LOG_FILE"] = ""
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DEBUG"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PUBLISHED_PROJECTS_BASE_URL"] = "http://publish.test"

from typing import Any, AsyncGenerator, Dict, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from main import app
from app.core.database import Base, enable_sqlite_foreign_keys, get_db
from app.services.auth_service import TokenValidator, get_token_validator
from app.services.content_cache import build_cache_registry, get_cache

from .factories import TOKENS


def identity_provider(request: httpx.Request) -> httpx.Response:
    """Stand-in for the identity provider's ``GET /user``."""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if request.url.path != "/user" or scheme != "token" or token not in TOKENS:
        return httpx.Response(401, json={"message": "Bad credentials"})
    return httpx.Response(200, json=TOKENS[token])


class MemoryCacheBackend:
    """Dict-backed cache backend that records every operation."""

    def __init__(self):
        self.store: Dict[str, Any] = {}
        self.deleted = []

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self.store[key] = value
        return True

    async def delete(self, key: str) -> bool:
        self.deleted.append(key)
        return self.store.pop(key, None) is not None


@pytest.fixture
async def engine(tmp_path):
    """A fresh SQLite database per test, with foreign keys enforced."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def cache_registry(session_factory, cache_backend):
    return build_cache_registry(session_factory, backend=cache_backend)


@pytest.fixture
def token_validator() -> TokenValidator:
    return TokenValidator("http://id.test", transport=httpx.MockTransport(identity_provider))


@pytest.fixture
async def client(session_factory, cache_registry, token_validator) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create a test client."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache_registry
    app.dependency_overrides[get_token_validator] = lambda: token_validator

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
