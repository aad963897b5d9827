# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student domain package.

This package provides the student registry:
- Admission with national id and name uniqueness
- Withdrawal and restoration
"""

from schoolcore.domains.student.service import StudentService

__all__ = [
    "StudentService",
]
