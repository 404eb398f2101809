"""Process entry point: wire settings, storage and the pick scheduler.

The engine is a library; the transport layer builds a service with
``create_service`` and calls its operations. ``main`` runs the standalone
scheduler process (``reelclub`` console script).
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from reelclub.config import Settings
from reelclub.core.scheduler_runner import build_scheduler
from reelclub.core.service import SeasonService
from reelclub.db.engine import create_engine, init_db
from reelclub.db.memory import MemoryStore
from reelclub.db.repository import sql_unit_of_work

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.reelclub_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def create_service(
    settings: Settings | None = None,
) -> tuple[SeasonService, AsyncEngine | None]:
    """Build a SeasonService on the configured adapter.

    Returns the service and, for SQL storage, the engine (the caller disposes
    it). Tables are created if missing.
    """
    settings = settings or Settings()
    if settings.reelclub_storage == "memory":
        store = MemoryStore(path=settings.reelclub_data_file or None)
        logger.info("storage_selected backend=memory file=%s", settings.reelclub_data_file or "-")
        return SeasonService(store.unit_of_work, settings), None

    engine = create_engine(settings.database_url)
    await init_db(engine)
    logger.info("storage_selected backend=sql")
    return SeasonService(sql_unit_of_work(engine), settings), engine


async def run(settings: Settings) -> None:
    """Run the pick scheduler until cancelled."""
    service, engine = await create_service(settings)
    scheduler = build_scheduler(settings, service)
    if scheduler is not None:
        scheduler.start()
        logger.info("scheduler_started cron=%s", settings.reelclub_pick_cron)
    try:
        await asyncio.Event().wait()
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("scheduler_stopped")
        if engine is not None:
            await engine.dispose()


def main() -> None:
    settings = Settings()
    configure_logging(settings)
    if not settings.reelclub_auto_pick:
        logger.warning("auto_pick_disabled: set REELCLUB_AUTO_PICK=true to schedule picks")
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("shutdown")


if __name__ == "__main__":
    main()
