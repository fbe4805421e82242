import asyncio
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from focusflow.client.api import FocusFlowClient
from focusflow.client.cache import QueryCache
from focusflow.client.context import ClientContext
from focusflow.database import get_db
from focusflow.dependencies import get_current_user
from focusflow.main import app
from focusflow.models import Base
from focusflow.models.user import User
from focusflow.timer.notifier import Toaster

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)
        if ex:
            self._ttls[key] = ex

    async def incr(self, key: str) -> int:
        val = int(self._store.get(key, "0")) + 1
        self._store[key] = str(val)
        return val

    async def expire(self, key: str, seconds: int) -> None:
        self._ttls[key] = seconds

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class FakeClock:
    """Manually advanced wall clock for timer tests."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 1) -> None:
        self.current += timedelta(seconds=seconds)


async def run_until(predicate, max_iterations: int = 10_000) -> None:
    """Spin the event loop until predicate() holds."""
    for _ in range(max_iterations):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="test@example.com",
        first_name="Test",
        last_name="Student",
        level=1,
        total_focus_time=0,
        current_streak=0,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="friend@example.com",
        first_name="Friend",
        last_name="Student",
        level=1,
        total_focus_time=0,
        current_streak=0,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def client(db_engine, test_user: User) -> AsyncGenerator[AsyncClient, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user(db: AsyncSession = Depends(get_db)):
        return await db.get(User, test_user.id)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.state.redis = FakeRedis()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def client_context(tmp_path, test_user: User) -> ClientContext:
    """A signed-in client context mirroring test_user."""
    context = ClientContext(tmp_path / "session.json")
    context.access_token = "test-access-token"
    context.user = {
        "id": str(test_user.id),
        "email": test_user.email,
        "first_name": test_user.first_name,
        "last_name": test_user.last_name,
        "total_focus_time": test_user.total_focus_time,
    }
    return context


@pytest.fixture
def api(client: AsyncClient, client_context: ClientContext) -> FocusFlowClient:
    """FocusFlow client talking to the in-process app."""
    return FocusFlowClient(client_context, http=client)


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def toaster() -> Toaster:
    return Toaster()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
