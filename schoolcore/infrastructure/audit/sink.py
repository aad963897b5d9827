# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit sinks for committed engine operations.

Auditing is fire-and-forget: a sink never raises into the caller and a
failed audit write never undoes the business transaction it describes.
Services call record() only after their own transaction has committed.
"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schoolcore.infrastructure.database.models import AuditLog
from schoolcore.utils.logging import get_logger

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


class AuditSink(Protocol):
    """Receiver of audit entries."""

    async def record(self, message: str, operation: str, actor: str = SYSTEM_ACTOR) -> None:
        """Record that an operation was committed."""
        ...


class LoggingAuditSink:
    """Writes audit entries to the structured log."""

    async def record(self, message: str, operation: str, actor: str = SYSTEM_ACTOR) -> None:
        logger.info(message, audit=True, operation=operation, actor=actor)


class DatabaseAuditSink:
    """Persists audit entries to the audit_logs table.

    Each entry is written through its own short-lived session so the
    caller's transaction is never touched.

    Attributes:
        sessionmaker: Factory for the sessions used to write entries.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the sink.

        Args:
            sessionmaker: Factory for the sessions used to write entries.
        """
        self.sessionmaker = sessionmaker

    async def record(self, message: str, operation: str, actor: str = SYSTEM_ACTOR) -> None:
        try:
            async with self.sessionmaker() as session:
                session.add(AuditLog(message=message, operation=operation, actor=actor))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning(
                "Audit entry could not be stored",
                operation=operation,
                actor=actor,
                error=str(e),
            )
