# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for SchoolCore.

structlog renders every event and hands the final line to the standard
library logger of the same name, so records from domain services using
logging.getLogger() and from infrastructure using get_logger() land in
one stream. Development gets a colored console, everything else JSON.

Example:
    >>> from schoolcore.utils.logging import setup_logging, get_logger
    >>> from schoolcore.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("Enrollment committed", student_id="123", classroom=4)
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from schoolcore.core.config.settings import Settings

# Driver and migration loggers kept at WARNING whatever the app level is
QUIET_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "alembic",
    "asyncio",
    "aiosqlite",
)


def _processors(settings: "Settings") -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.is_development or settings.debug:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        chain.extend([structlog.processors.format_exc_info, structlog.processors.JSONRenderer()])
    return chain


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the standard library root logger.

    Args:
        settings: Application settings providing log_level, environment
            and the debug flag.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("schoolcore").setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


def bind_context(**values: object) -> None:
    """Bind key-value pairs to every later event in the current context.

    Args:
        **values: Pairs such as actor or operation name.
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    """Drop every bound context variable."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def operation_context(operation: str, **values: object) -> Iterator[None]:
    """Bind an engine operation name for the duration of a block.

    Variables bound before the block are restored when it exits.

    Args:
        operation: Engine operation name, e.g. "enroll".
        **values: Extra pairs bound alongside the operation.
    """
    with structlog.contextvars.bound_contextvars(operation=operation, **values):
        yield
