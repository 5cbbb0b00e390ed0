from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from advisor_scheduler.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings for a server database; SQLite gets the dialect defaults."""
    options: Dict[str, Any] = {"echo": settings.sql_echo, "future": True}
    if not database_url.startswith("sqlite"):
        # Check connections before use and recycle idle ones the server may have dropped
        options.update(pool_pre_ping=True, pool_recycle=300)
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session
