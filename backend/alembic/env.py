"""
Alembic Migration Environment
===============================

What:  Runs mutual fund tracking migrations against the configured database.
How:   Online mode reuses open_engine() from mftracking.database, so migrations
       connect with the same DSN and TLS setting as the service.
       Offline mode renders SQL for the Settings DSN without connecting.
Who:   `alembic -c backend/alembic.ini upgrade head` and friends.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from mftracking.config import settings
from mftracking.database import Base, open_engine

# Alembic only sees models imported and registered with Base
from mftracking.models.mutual_fund_meta import MutualFundMetaRow  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout."""
    context.configure(
        url=settings.database_dsn,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Apply pending revisions over one connection, then close the pool."""
    engine = open_engine(settings)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
