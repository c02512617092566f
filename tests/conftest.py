"""
Pytest configuration and fixtures for portfolio-sync tests.

This module provides:
- In-memory SQLite database fixtures
- Local store fixtures (in-memory, unavailable, SQLite-backed)
- A fake remote store with injectable failures, latency and call recording
- Coordinator factories with a short debounce
- Deterministic growth rate providers
- Time helpers for UTC
"""

import asyncio
import copy
from datetime import datetime
from typing import Any, Callable, Optional

import pytest
import pytest_asyncio
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from portfolio_sync.main import app
from portfolio_sync.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from portfolio_sync.repositories.sqlalchemy import orm_models  # noqa: F401
from portfolio_sync.repositories.sqlalchemy import (
    SqlAlchemyLocalStore,
    SqlAlchemyRemoteRepository,
    SqlAlchemyRemoteStore,
)
from portfolio_sync.repositories import InMemoryLocalStore
from portfolio_sync.services import InProcessBroadcastChannel, StateSyncCoordinator
from portfolio_sync.core.exceptions import (
    IdentityMismatchError,
    NotFoundError,
    RemoteStoreError,
)
from portfolio_sync.core.timezone import UTC_TZ
from portfolio_sync.domain.models import PortfolioEntry, Scenario
from portfolio_sync.config.settings import Settings, reset_settings, set_settings
from portfolio_sync.api import deps


# Short enough to keep the suite fast, long enough to collapse bursts
DEBOUNCE = 0.03


# =============================================================================
# TIME HELPERS
# =============================================================================


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in UTC."""
    return UTC_TZ.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return utc_datetime(2024, 6, 15, 14, 30, 0)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    """Session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_session(session_factory) -> Session:
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# STORE FIXTURES
# =============================================================================


@pytest.fixture
def remote_repo(test_session) -> SqlAlchemyRemoteRepository:
    """Provide the synchronous SQL remote repository."""
    return SqlAlchemyRemoteRepository(test_session)


@pytest.fixture
def sql_remote_store(session_factory) -> SqlAlchemyRemoteStore:
    """Provide the async SQL remote store."""
    return SqlAlchemyRemoteStore(session_factory)


@pytest.fixture
def sql_local_store(test_session) -> SqlAlchemyLocalStore:
    """Provide the SQLite-backed local store."""
    return SqlAlchemyLocalStore(test_session)


@pytest.fixture
def local_store() -> InMemoryLocalStore:
    """Provide a working in-memory local store."""
    return InMemoryLocalStore()


@pytest.fixture
def unavailable_local_store() -> InMemoryLocalStore:
    """Provide a local store whose every call fails (private mode)."""
    return InMemoryLocalStore(available=False)


# =============================================================================
# REMOTE STORE FAKE
# =============================================================================


class FakeRemoteStore:
    """
    In-memory RemoteStore with controllable behavior.

    - `fail_reads` / `fail_writes`: number of upcoming calls that raise
      (use a large number for "always")
    - `latency`: seconds each call sleeps before completing
    - `calls`: (method, user_id, payload) in the order calls *started*
    - `completed`: preference payloads in the order writes *finished*
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.fail_reads = 0
        self.fail_writes = 0
        self.preferences: dict[str, dict[str, Any]] = {}
        self.entries: dict[str, dict[str, PortfolioEntry]] = {}
        self.scenarios: dict[str, dict[str, Scenario]] = {}
        self.calls: list[tuple[str, str, Any]] = []
        self.completed: list[tuple[str, dict[str, Any]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def writes(self, user_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Preference payloads sent so far, optionally for one user."""
        return [
            payload for method, uid, payload in self.calls
            if method == "upsert_preferences" and (user_id is None or uid == user_id)
        ]

    async def _enter(self, method: str, user_id: str, payload: Any = None) -> None:
        self.calls.append((method, user_id, copy.deepcopy(payload)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1

    def _maybe_fail_read(self) -> None:
        if self.fail_reads:
            self.fail_reads -= 1
            raise RemoteStoreError("Remote store unreachable")

    def _maybe_fail_write(self) -> None:
        if self.fail_writes:
            self.fail_writes -= 1
            raise RemoteStoreError("Remote store unreachable")

    # Preferences

    async def get_preferences(self, user_id: str) -> Optional[dict[str, Any]]:
        await self._enter("get_preferences", user_id)
        self._maybe_fail_read()
        stored = self.preferences.get(user_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def upsert_preferences(self, user_id: str, inputs: dict[str, Any]) -> None:
        await self._enter("upsert_preferences", user_id, inputs)
        self._maybe_fail_write()
        self.preferences[user_id] = copy.deepcopy(inputs)
        self.completed.append((user_id, copy.deepcopy(inputs)))

    # Entries

    async def list_entries(self, user_id: str) -> list[PortfolioEntry]:
        await self._enter("list_entries", user_id)
        self._maybe_fail_read()
        entries = list(self.entries.get(user_id, {}).values())
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    async def insert_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        await self._enter("insert_entry", user_id, entry.to_dict())
        self._maybe_fail_write()
        entry.owner_id = user_id
        self.entries.setdefault(user_id, {})[entry.entry_id] = entry
        return entry

    async def update_entry(self, user_id: str, entry: PortfolioEntry) -> PortfolioEntry:
        await self._enter("update_entry", user_id, entry.to_dict())
        self._maybe_fail_write()
        self._owned(self.entries, user_id, entry.entry_id, "Portfolio entry")
        if entry.created_at is None:
            entry.created_at = self.entries[user_id][entry.entry_id].created_at
        self.entries[user_id][entry.entry_id] = entry
        return entry

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        await self._enter("delete_entry", user_id, entry_id)
        self._maybe_fail_write()
        self._owned(self.entries, user_id, entry_id, "Portfolio entry")
        del self.entries[user_id][entry_id]

    # Scenarios

    async def list_scenarios(self, user_id: str) -> list[Scenario]:
        await self._enter("list_scenarios", user_id)
        self._maybe_fail_read()
        return [copy.deepcopy(s) for s in self.scenarios.get(user_id, {}).values()]

    async def insert_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        await self._enter("insert_scenario", user_id, scenario.name)
        self._maybe_fail_write()
        self.scenarios.setdefault(user_id, {})[scenario.scenario_id] = copy.deepcopy(scenario)
        return scenario

    async def update_scenario(self, user_id: str, scenario: Scenario) -> Scenario:
        await self._enter("update_scenario", user_id, scenario.name)
        self._maybe_fail_write()
        self._owned(self.scenarios, user_id, scenario.scenario_id, "Scenario")
        self.scenarios[user_id][scenario.scenario_id] = copy.deepcopy(scenario)
        return scenario

    async def delete_scenario(self, user_id: str, scenario_id: str) -> None:
        await self._enter("delete_scenario", user_id, scenario_id)
        self._maybe_fail_write()
        self._owned(self.scenarios, user_id, scenario_id, "Scenario")
        del self.scenarios[user_id][scenario_id]

    @staticmethod
    def _owned(table: dict, user_id: str, key: str, resource: str) -> None:
        if key in table.get(user_id, {}):
            return
        for other, rows in table.items():
            if other != user_id and key in rows:
                raise IdentityMismatchError(resource, key)
        raise NotFoundError(resource, key)


@pytest.fixture
def fake_remote() -> FakeRemoteStore:
    """Provide a fake remote store with no latency."""
    return FakeRemoteStore()


# =============================================================================
# COORDINATOR FIXTURES
# =============================================================================


@pytest.fixture
def channel() -> InProcessBroadcastChannel:
    """Provide a broadcast channel shared by coordinators in one test."""
    return InProcessBroadcastChannel()


@pytest_asyncio.fixture
async def coordinator_factory(local_store, fake_remote, channel, fixed_now):
    """
    Factory for coordinators sharing the test's local store, remote and channel.

    Every coordinator created is closed after the test.
    """
    created: list[StateSyncCoordinator] = []

    def _create(
        user_id: Optional[str] = None,
        local=None,
        remote: Any = fake_remote,
        debounce_seconds: float = DEBOUNCE,
        clock: Optional[Callable[[], datetime]] = None,
        **kwargs: Any,
    ) -> StateSyncCoordinator:
        coordinator = StateSyncCoordinator(
            local_store=local if local is not None else local_store,
            remote_store=remote,
            channel=channel,
            user_id=user_id,
            debounce_seconds=debounce_seconds,
            clock=clock or (lambda: fixed_now),
            **kwargs,
        )
        created.append(coordinator)
        return coordinator

    yield _create

    for coordinator in created:
        await coordinator.aclose()


async def wait_for_writes(remote: FakeRemoteStore, count: int, timeout: float = 1.0) -> None:
    """Wait until `count` preference writes have started."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while len(remote.writes()) < count:
        if loop.time() > deadline:
            raise AssertionError(f"expected {count} writes, saw {len(remote.writes())}")
        await asyncio.sleep(0.005)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicRateProvider:
    """Growth rate provider with fixed rates and a call counter."""

    RATES = {"BTC": 30.0, "SPX": 10.0, "QQQ": 12.0}

    def __init__(self):
        self.calls = 0

    def get_suggested_rate(self, asset: str) -> Optional[float]:
        self.calls += 1
        return self.RATES.get(asset.strip().upper())


class FailingRateProvider:
    """Growth rate provider that always raises an exception."""

    def get_suggested_rate(self, asset: str) -> Optional[float]:
        raise ConnectionError("Network unavailable")


@pytest.fixture
def deterministic_provider() -> DeterministicRateProvider:
    return DeterministicRateProvider()


@pytest.fixture
def failing_provider() -> FailingRateProvider:
    return FailingRateProvider()


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def client(test_engine, session_factory, tmp_path) -> TestClient:
    """Provide FastAPI test client with test database."""
    reset_database()
    set_settings(Settings(data_dir=tmp_path))
    deps._market_data_service = None

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()
    reset_settings()


def user_headers(user_id: str = "user-1") -> dict[str, str]:
    """Identity header for user-scoped routes."""
    return {"X-User-Id": user_id}
