# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course-year domain package.

This package provides course-year lifecycle functionality including:
- Opening a course-year with carried-forward staffing
- Closing the active course-year behind the evaluation gate
- Resolving the current course-year
"""

from schoolcore.domains.course_year.service import CourseYearService

__all__ = [
    "CourseYearService",
]
