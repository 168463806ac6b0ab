"""Alembic environment — async migrations for the workflow-model tables.

Invariants:
    - The database URL comes from workflow_model Settings (DATABASE_URL / .env), so the
      postgresql:// → postgresql+asyncpg:// normalization happens in one place
    - workflow_model.models is imported before target_metadata is read
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

import workflow_model.models  # noqa: F401
from workflow_model.config import Settings
from workflow_model.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
database_url = Settings().database_url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata, compare_type=True, **kwargs,
    )


def run_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
