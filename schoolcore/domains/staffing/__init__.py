# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staffing domain package.

This package provides classroom staffing functionality including:
- Staffing completeness per track and course-year
- Teacher assignment and removal
"""

from schoolcore.domains.staffing.service import StaffingService

__all__ = [
    "StaffingService",
]
