"""
Create all tables for the current models.

Usage: python -m advisor_scheduler.db.init_db
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

# Register every model on Base.metadata
import advisor_scheduler.core.models  # noqa: F401
from advisor_scheduler.core.logging import configure_logging
from advisor_scheduler.db.session import Base, engine

logger = logging.getLogger(__name__)


async def create_all(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    await create_all(engine)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
    await engine.dispose()


def main() -> None:
    configure_logging()
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
