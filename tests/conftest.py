import heapq
import itertools
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from bizpulse.main import app
from bizpulse.database import Base, get_db
from bizpulse.notifications import (
    BusinessEventWatcher,
    CooldownRegistry,
    MemoryCooldownStorage,
    NotificationStore,
)

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

# Noon keeps "today" and "yesterday" well inside their calendar days
START_TIME = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class VirtualTimer:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class VirtualClock:
    """
    Manually advanced clock that also acts as the store's task scheduler.

    Callbacks run synchronously from :meth:`advance` once their due time is
    reached.
    """

    def __init__(self, start: datetime = START_TIME):
        self._now = start
        self._queue = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay, callback):
        timer = VirtualTimer()
        due = self._now + timedelta(seconds=delay)
        heapq.heappush(self._queue, (due, next(self._seq), timer, callback))
        return timer

    def advance(self, seconds: float = 0, **delta):
        target = self._now + timedelta(seconds=seconds, **delta)
        while self._queue and self._queue[0][0] <= target:
            due, _, timer, callback = heapq.heappop(self._queue)
            self._now = due
            if not timer.cancelled:
                callback()
        self._now = target

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer, _ in self._queue if not timer.cancelled)


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def store(clock):
    return NotificationStore(max_notifications=5, auto_remove_delay=5.0, scheduler=clock, clock=clock)


@pytest.fixture
def cooldowns(clock):
    return CooldownRegistry(MemoryCooldownStorage(), clock=clock)


@pytest.fixture
def watcher(store, cooldowns, clock):
    return BusinessEventWatcher(store, cooldowns, clock=clock)


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, store, watcher):
    """Create test client with overridden database and alerting components."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.state.notification_store = store
    app.state.event_watcher = watcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
