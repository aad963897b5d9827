# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata.
"""

from schoolcore.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from schoolcore.infrastructure.database.models.school import (
    AuditLog,
    Classroom,
    ClassroomTeacher,
    CourseYear,
    Enrollment,
    Evaluation,
    Student,
    Teacher,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "AuditLog",
    "Classroom",
    "ClassroomTeacher",
    "CourseYear",
    "Enrollment",
    "Evaluation",
    "Student",
    "Teacher",
]
