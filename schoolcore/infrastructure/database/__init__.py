# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the relational store.

This package provides:
- Connection pool and session management (connection)
- The transaction boundary used by every engine write (transaction)
- ORM models (models) and Alembic migrations (migrations)

Example:
    from schoolcore.infrastructure.database import get_session, run_atomic

    async with get_session() as session:
        result = await run_atomic(session, "enroll", work)
"""

from schoolcore.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from schoolcore.infrastructure.database.transaction import (
    conflict_from_integrity_error,
    run_atomic,
)

__all__ = [
    # Connection
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    # Transaction boundary
    "conflict_from_integrity_error",
    "run_atomic",
]
