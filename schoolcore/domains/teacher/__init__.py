# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher domain package.

This package provides the teacher registry:
- Hiring with national id and name uniqueness
- Subject changes, withdrawal and restoration
"""

from schoolcore.domains.teacher.service import TeacherService

__all__ = [
    "TeacherService",
]
