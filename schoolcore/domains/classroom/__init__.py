# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom domain package.

This package provides the classroom registry:
- Classroom creation with unique numbers
- Track changes for empty classrooms
- Occupancy and staffing views
"""

from schoolcore.domains.classroom.service import ClassroomService

__all__ = [
    "ClassroomService",
]
