"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode: create_async_engine for connection pooling,
AsyncSession for per-request database access. store.get_store opens one
session per request and wraps it in a SQLStore.

The pool is the only shared mutable state between requests, and it is safe
for concurrent use. Statement and checkout timeouts keep a stuck database
from pinning a request forever: asyncpg cancels statements after
command_timeout seconds, and the pool gives up after pool_timeout.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tasklist.config import settings

# Connection pool: min 5, max 20 connections by default.
# echo=True in debug to see SQL queries.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_timeout=settings.db_pool_timeout,
    pool_pre_ping=True,
    connect_args={"command_timeout": settings.db_command_timeout},
)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_schema() -> None:
    """Create all tables from the ORM metadata (used by `tasklist init-db`)."""
    from tasklist.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
