# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application lifecycle for schoolcore.

Hosts call startup() once before opening engines and shutdown() once
when they stop. lifespan() wraps both for hosts that manage resources
through async context managers.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from schoolcore.core.config import Settings, get_settings
from schoolcore.infrastructure.database import (
    check_database_connection,
    close_database,
    init_database,
)
from schoolcore.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def startup(settings: Settings | None = None) -> Settings:
    """Configure logging and open the database pool.

    Args:
        settings: Application settings. Defaults to the cached settings.

    Returns:
        The settings the application was started with.

    Raises:
        DatabaseError: If the connection pool cannot be created.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    logger.info(
        "Starting schoolcore",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    await init_database(settings)

    if await check_database_connection():
        logger.info("Database connection initialized")
    else:
        logger.warning("Database is not reachable yet")

    return settings


async def shutdown() -> None:
    """Close the database pool."""
    await close_database()
    logger.info("Database connections closed")


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncGenerator[Settings, None]:
    """Run startup on entry and shutdown on exit.

    Args:
        settings: Application settings. Defaults to the cached settings.

    Yields:
        The settings the application was started with.
    """
    started = await startup(settings)
    try:
        yield started
    finally:
        await shutdown()
