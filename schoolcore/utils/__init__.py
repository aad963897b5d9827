# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for SchoolCore.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations and the Clock collaborator
"""

from schoolcore.utils.datetime import (
    Clock,
    SystemClock,
    add_years,
    ensure_utc,
    utc_now,
)
from schoolcore.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    operation_context,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "operation_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "add_years",
    "Clock",
    "SystemClock",
]
