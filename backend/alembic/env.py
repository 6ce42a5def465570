"""
Alembic Migration Environment
===============================

What:  Runs Alembic against the async engine described by DATABASE_URL.
How:   Imports every model so Base.metadata (tables plus the
       seq_numero_compra sequence) is complete for --autogenerate, then
       drives the migrations through connection.run_sync().
Who:   `alembic upgrade head` / `alembic revision --autogenerate` from the
       backend/ directory.
When:  Deployments that manage the schema explicitly. Services also create
       their own tables at startup (Store.initialize).
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from tienda.config import settings
from tienda.database import Base

# Every model must be imported for --autogenerate to see its table
import tienda.models  # noqa: F401

# Alembic Config object: access to the alembic.ini values
config = context.config

# Logging setup from the [loggers] sections of alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Metadata compared against the live schema by --autogenerate
target_metadata = Base.metadata

# DATABASE_URL is the single source of truth; alembic.ini carries no URL
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode (alembic upgrade --sql).

    What:  Emits the SQL to stdout without connecting, for review or for a
           DBA to apply by hand.
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Apply pending migrations on one sync connection inside a transaction."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # SQLite has no ALTER COLUMN; batch mode rebuilds the table instead
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Run migrations in 'online' mode with the async engine.

    How:   asyncpg/aiosqlite engine from the config section, migrations run
           in a sync context via connection.run_sync().
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,  # one-shot process, no pooling
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


# `alembic ... --sql` selects offline mode
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
