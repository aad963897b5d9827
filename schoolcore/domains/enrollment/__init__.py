# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides enrollment functionality including:
- Eligibility checks and enrollment into the active course-year
- Classroom changes during the re-enrollment window
"""

from schoolcore.domains.enrollment.service import EnrollmentService
from schoolcore.domains.enrollment.window import EnrollmentWindow, MonthEnrollmentWindow

__all__ = [
    "EnrollmentService",
    "EnrollmentWindow",
    "MonthEnrollmentWindow",
]
