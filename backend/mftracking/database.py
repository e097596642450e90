"""
Mutual Fund Tracking Backend — Database Engine & Sessions
==========================================================

What:  Async SQLAlchemy engine construction, session factory, declarative base.
Why:   Centralizes all connection logic so the rest of the code only ever
       sees an `async_sessionmaker`.
How:   `open_engine()` builds a pooled async engine from Settings;
       `create_session_factory()` wraps it; `ping()` verifies connectivity.
Who:   Called by the application factory (main.py), Alembic and tests.

Connection Pooling Strategy:
    pool_size:     Persistent connections for normal load
    max_overflow:  Temporary connections for traffic spikes
    pool_pre_ping: Validates connections before use (catches stale connections)
    pool_recycle:  Recycles connections every hour

    SQLite (used by the test-suite) manages its own pool, so the sizing
    arguments are only passed for server databases.
"""

import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mftracking.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for autogenerate
    and the test-suite uses to create the schema.
    """
    pass


def open_engine(cfg: Settings) -> AsyncEngine:
    """
    Create the async engine described by the configuration.

    What:    Builds the engine without connecting (connections are lazy).
    Returns: AsyncEngine shared by every request for the process lifetime.
    """
    url = make_url(cfg.database_dsn)
    options: Dict[str, Any] = {
        "echo": cfg.log_level == "DEBUG",
    }

    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=cfg.db_pool_size,
            max_overflow=cfg.db_max_overflow,
            pool_pre_ping=cfg.db_pool_pre_ping,
            pool_recycle=3600,
        )
    if url.get_driver_name() == "asyncpg":
        # asyncpg takes the libpq sslmode names directly
        options["connect_args"] = {
            "ssl": "disable" if cfg.db_disable_tls else "require",
        }

    logger.info(
        "Opening database engine: %s",
        url.render_as_string(hide_password=True),
    )
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the engine.

    expire_on_commit=False: rows returned from a finished transaction keep
    their loaded attributes, so they can be converted after the session closes.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def ping(engine: AsyncEngine) -> None:
    """Round-trips `SELECT 1`; raises the driver error if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
