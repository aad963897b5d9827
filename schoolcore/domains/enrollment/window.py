# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Re-enrollment window collaborators."""

from datetime import datetime
from typing import Protocol


class EnrollmentWindow(Protocol):
    """Decides whether existing enrollments may be changed."""

    def is_open(self, now: datetime) -> bool:
        """Return True if enrollments may be changed at `now`."""
        ...


class MonthEnrollmentWindow:
    """Window open during fixed calendar months.

    Attributes:
        months: Calendar months (1-12) in which the window is open.
    """

    def __init__(self, months: list[int]) -> None:
        self.months = frozenset(months)

    def is_open(self, now: datetime) -> bool:
        return now.month in self.months
