"""Alembic environment for the match store.

Run from ``backend/`` with ``DATABASE_URL`` set::

    DATABASE_URL=postgresql://... alembic upgrade head
"""

import asyncio
import os
import sys
from logging.config import fileConfig

sys.path.append(os.path.dirname(os.path.dirname(__file__)))  # backend/

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from courtside import models  # noqa: F401  # registers the match table
from courtside.db import Base, normalize_database_url

config = context.config
if config.config_file_name and config.file_config.has_section("loggers"):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL environment variable is required")
    return normalize_database_url(url)


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **options)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(lambda conn: _configure_and_run(connection=conn))
    await engine.dispose()


if context.is_offline_mode():
    _configure_and_run(url=_database_url(), literal_binds=True)
else:
    asyncio.run(_run_online(_database_url()))
