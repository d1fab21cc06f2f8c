"""Alembic environment — async migrations for the livechat schema.

Design Decisions:
    - DATABASE_URL (same variable and rewriting as livechat.config) wins over
      the alembic.ini fallback, so `alembic upgrade head` targets the same
      database the server uses
    - SQLite runs in batch mode: ALTER TABLE support there is minimal
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from livechat.config import normalize_database_url
from livechat.db.base import Base
import livechat.models  # noqa: F401  (registers users and messages)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return normalize_database_url(
        os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url"),
    )


def _configure(**kwargs) -> None:
    url = kwargs.get("url")
    if url is None:
        dialect = kwargs["connection"].dialect.name
    else:
        dialect = url.split(":", 1)[0].split("+", 1)[0]
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=dialect == "sqlite",
        **kwargs,
    )


def run_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=database_url(),
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
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = database_url()
    engine = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool,
    )
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
