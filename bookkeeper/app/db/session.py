"""
Database session configuration.

Async SQLAlchemy engine and session factory for the ledger database
(PostgreSQL via asyncpg in deployment).
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from bookkeeper.app.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool sizing applies to server databases only; SQLite ignores it."""
    options: Dict[str, Any] = {"echo": settings.db_echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

# Closing balances written during a replay stay readable after each commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """FastAPI dependency yielding one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
