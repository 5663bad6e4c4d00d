"""
Alembic Migration Environment
===============================

What:  Runs guidebook migrations against the async database in settings.
How:   Builds a NullPool async engine and hands its connection to Alembic
       through connection.run_sync().
Who:   Called by `alembic` CLI commands (upgrade, downgrade, revision).

URL resolution:
    alembic -x url=sqlite+aiosqlite:///./other.db upgrade head   (explicit)
    otherwise DATABASE_URL / guidebook.config.settings.database_url

SQLite has almost no ALTER TABLE, so migrations are rendered in batch mode there.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from alembic import context

from guidebook.config import settings
from guidebook.database import Base

# Registers the guides table on Base.metadata for --autogenerate
from guidebook.models.guide import Guide  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.database_url


def configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=database_url().startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Print the migration SQL instead of executing it (`alembic upgrade head --sql`)."""
    configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    engine = create_async_engine(database_url(), poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
