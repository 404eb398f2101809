"""Engine, schema bootstrap and transactional sessions for the SQL store.

``get_session`` is the transaction boundary used by ``sql_unit_of_work``:
one session per engine operation, committed when the block exits cleanly.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reelclub.db.models import Base

logger = logging.getLogger(__name__)

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=15000",
)


def create_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Build the async engine for ``database_url``.

    SQLite connections get WAL mode and a busy timeout so the scheduler tick
    and request handlers can write to the same file. The schema declares no
    foreign keys (scoped rows are linked by ``scope_key``), so the
    ``foreign_keys`` pragma is left off.
    """
    if not database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)

    engine = create_async_engine(database_url, echo=echo, connect_args={"timeout": 15})

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn: object, connection_record: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        for pragma in _SQLITE_PRAGMAS:
            cursor.execute(pragma)
        cursor.close()

    return engine


async def init_db(engine: AsyncEngine) -> None:
    """Create the season, submission and history tables that are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(
        "db_initialized url=%s tables=%d",
        engine.url.render_as_string(hide_password=True),
        len(Base.metadata.tables),
    )


_factories: dict[int, async_sessionmaker[AsyncSession]] = {}


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    key = id(engine.sync_engine)
    factory = _factories.get(key)
    if factory is None:
        factory = _factories[key] = async_sessionmaker(engine, expire_on_commit=False)
    return factory


@asynccontextmanager
async def get_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """One transaction: commit after the block, roll back if it raises."""
    async with create_session_factory(engine)() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Re-raise pattern: roll back on any error
            await session.rollback()
            raise
