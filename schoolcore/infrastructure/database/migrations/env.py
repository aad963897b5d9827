# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Alembic environment for the SchoolCore schema.

There is a single database, so every table in Base.metadata is managed
here. The URL is resolved through DatabaseSettings, which reads
DATABASE_URL or the DB_* variables. SQLite connections render batch
operations so ALTER TABLE works on the test databases.

Usage:
    DATABASE_URL=postgresql+asyncpg://... alembic upgrade head
    alembic upgrade head --sql > schema.sql
"""

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from schoolcore.core.config.settings import DatabaseSettings
from schoolcore.infrastructure.database.models import Base

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)


def _context_options(**extra: Any) -> dict[str, Any]:
    options: dict[str, Any] = {"target_metadata": Base.metadata, "compare_type": True}
    options.update(extra)
    return options


def _emit_sql() -> None:
    """Write the migration SQL to stdout instead of executing it."""
    context.configure(
        **_context_options(
            url=DatabaseSettings().url,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
        )
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(
        **_context_options(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",
        )
    )
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_async() -> None:
    section = alembic_config.get_section(alembic_config.config_ini_section) or {}
    section["sqlalchemy.url"] = DatabaseSettings().url

    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _emit_sql()
else:
    asyncio.run(_migrate_async())
