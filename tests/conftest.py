"""Shared test fixtures."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from reelclub.config import Settings
from reelclub.core.service import SeasonService
from reelclub.db.engine import create_engine, get_session
from reelclub.db.memory import MemoryStore
from reelclub.db.models import Base
from reelclub.db.port import UnitOfWork
from reelclub.db.repository import Repository, sql_unit_of_work
from reelclub.models.season import ScopeConfig

START = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)


class FakeClock:
    """Injectable clock; tests move time forward explicitly."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@dataclass
class Backend:
    name: str
    unit_of_work: UnitOfWork
    configure_club: Callable[..., Awaitable[None]]


@pytest.fixture
def settings() -> Settings:
    """Test settings with defaults."""
    return Settings(reelclub_env="development", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def engine() -> AsyncEngine:
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def repo(engine: AsyncEngine) -> Repository:
    """Yield a repository with a session bound to the in-memory database."""
    async with get_session(engine) as session:
        yield Repository(session)


@pytest.fixture(params=["memory", "sql"])
async def backend(request: pytest.FixtureRequest, engine: AsyncEngine) -> Backend:
    """Both persistence adapters, so service tests run against each."""
    if request.param == "memory":
        store = MemoryStore()

        async def configure_memory(
            club_id: str, categories: list[str], season_length_weeks: int = 14
        ) -> None:
            store.configure_club(
                club_id,
                ScopeConfig(categories=categories, season_length_weeks=season_length_weeks),
            )

        return Backend("memory", store.unit_of_work, configure_memory)

    async def configure_sql(
        club_id: str, categories: list[str], season_length_weeks: int = 14
    ) -> None:
        async with get_session(engine) as session:
            await Repository(session).upsert_club(club_id, categories, season_length_weeks)

    return Backend("sql", sql_unit_of_work(engine), configure_sql)


@pytest.fixture
def service(backend: Backend, settings: Settings, clock: FakeClock) -> SeasonService:
    return SeasonService(backend.unit_of_work, settings, clock=clock, rng=random.Random(7))
