"""
Test infrastructure for the Content Catalog API.

Strategy
--------
- SQLite in-memory via aiosqlite stands in for Postgres.  StaticPool makes
  every session share the single in-memory connection, which is required
  because an in-memory SQLite database is connection-scoped.
- Redis is replaced by ``InMemoryRedis``, a test double exposing the four
  commands ``CacheManager`` issues (GET, SET EX, DELETE, PING).  It records
  the TTL of every write and can be switched into a failing mode to
  exercise the degrade-to-store path.
- The app is built through ``create_app`` with the test engine and cache,
  the same way production builds it from settings.
- Tables are created fresh before each test and dropped after.
"""
import time

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from catalog.cache import CacheManager
from catalog.config import Settings
from catalog.database import Base
from catalog.main import create_app
from catalog.middleware import install_query_counter
from catalog.schemas import Principal
from catalog.security import get_password_hash

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
install_query_counter(engine_test)

# Computed once; bcrypt hashing is deliberately slow.
PASSWORD = "s3cret-pass"
PASSWORD_HASH = get_password_hash(PASSWORD)


class InMemoryRedis:
    """Dict-backed stand-in for ``redis.asyncio.Redis`` (decode_responses=True)."""

    def __init__(self) -> None:
        self.data: dict[str, tuple[str, float | None]] = {}
        self.ttls: dict[str, int | None] = {}
        self.set_calls: list[str] = []
        self.failing = False

    def _check(self) -> None:
        if self.failing:
            raise RedisConnectionError("redis is down")

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self.data[key]
            return None
        return value

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self._check()
        expires_at = time.monotonic() + ex if ex else None
        self.data[key] = (value, expires_at)
        self.ttls[key] = ex
        self.set_calls.append(key)
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def aclose(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test-secret-key",
        LOG_LEVEL="WARNING",
        CACHE_TTL=300,
        MAX_PAGE_SIZE=50,
    )


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def cache(fake_redis: InMemoryRedis) -> CacheManager:
    return CacheManager("redis://test", timeout=1.0, client=fake_redis)


@pytest.fixture
def app(settings: Settings, cache: CacheManager):
    return create_app(settings=settings, engine=engine_test, cache=cache)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def article_service(app):
    return app.state.article_service


@pytest.fixture
def user_store(app):
    return app.state.user_store


@pytest_asyncio.fixture
async def author(user_store) -> Principal:
    user = await user_store.add("author@example.com", PASSWORD_HASH, "Ada", "Author")
    return Principal(id=user.id)


@pytest_asyncio.fixture
async def other_user(user_store) -> Principal:
    user = await user_store.add("other@example.com", PASSWORD_HASH, "Otto", "Other")
    return Principal(id=user.id)


async def register(client: AsyncClient, email: str) -> dict:
    """Register *email* and return an ``Authorization`` header for it."""
    resp = await client.post("/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "first_name": "Test",
        "last_name": "User",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
