# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities and the clock collaborator for SchoolCore.

Design Decisions:
-----------------
1. All timestamps are stored in UTC
2. All Python datetimes produced here are timezone-aware (with timezone.utc)
3. Engine services never call datetime.now() directly; they ask a Clock,
   so date-based rules can be exercised with a fixed clock in tests

Usage:
------
    from schoolcore.utils.datetime import SystemClock, utc_now

    clock = SystemClock()
    stamped_at = clock.now()
"""

from datetime import date, datetime, timezone
from typing import Protocol


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def add_years(day: date, years: int) -> date:
    """Shift a date by whole calendar years.

    February 29th maps to February 28th in non-leap target years.

    Args:
        day: Starting date.
        years: Number of years to add (may be negative).

    Returns:
        The shifted date.
    """
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


class Clock(Protocol):
    """Source of the current time for engine operations."""

    def now(self) -> datetime:
        """Return the current timezone-aware time."""
        ...


class SystemClock:
    """Clock backed by the system UTC time."""

    def now(self) -> datetime:
        return utc_now()
