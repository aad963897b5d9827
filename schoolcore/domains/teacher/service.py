# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher service for hires, subject changes and withdrawals.

This module provides the TeacherService class for:
- Hiring teachers for one subject
- Changing a teacher's subject while they hold no current duties
- Withdrawing and restoring teachers
- Teacher lookup

"Current duties" means assignments in the current course-year. A subject
change is also refused once the teacher has graded anyone, in any year.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.domains import lookups
from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    NotFound,
    Result,
    Success,
    ValidationError,
)
from schoolcore.infrastructure.audit import SYSTEM_ACTOR, AuditSink, LoggingAuditSink
from schoolcore.infrastructure.database.models import ClassroomTeacher, Evaluation, Teacher
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.common import Subject
from schoolcore.models.people import TeacherHireRequest, TeacherResponse

logger = logging.getLogger(__name__)


class TeacherService:
    """Service for the teacher registry.

    Attributes:
        db: Async database session.
        audit: Sink receiving an entry for each committed change.
    """

    def __init__(self, db: AsyncSession, audit: AuditSink | None = None) -> None:
        """Initialize teacher service.

        Args:
            db: Async database session.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.audit = audit or LoggingAuditSink()

    async def hire_teacher(
        self,
        first_name: str,
        last_name: str,
        national_id: str,
        subject: Subject,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[TeacherResponse]:
        """Hire a teacher for one subject.

        Args:
            first_name: Given name.
            last_name: Family name.
            national_id: 11-digit national id, unique across students and teachers.
            subject: Subject the teacher owns.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the teacher, ValidationError or Conflict.
        """
        try:
            request = TeacherHireRequest(
                first_name=first_name,
                last_name=last_name,
                national_id=national_id,
                subject=subject,
            )
        except PydanticValidationError as e:
            return ValidationError.from_pydantic(e)

        async def work() -> Result[TeacherResponse]:
            if await lookups.national_id_in_use(self.db, request.national_id):
                return Conflict(
                    ConflictReason.NATIONAL_ID_TAKEN,
                    "A person with this national id already exists",
                )

            if await lookups.full_name_in_use(self.db, request.first_name, request.last_name):
                return Conflict(
                    ConflictReason.NAME_TAKEN,
                    "A person with this name already exists",
                )

            teacher = Teacher(
                first_name=request.first_name,
                last_name=request.last_name,
                national_id=request.national_id,
                subject=request.subject,
                is_active=True,
            )
            self.db.add(teacher)
            await self.db.flush()

            return Success(self._to_response(teacher))

        result = await run_atomic(self.db, "hire_teacher", work)

        if isinstance(result, Success):
            logger.info("Hired teacher: %s (%s)", result.payload.id, request.subject.value)
            await self.audit.record(
                f"Teacher {result.payload.full_name} hired for {request.subject.value}",
                "hire_teacher",
                actor,
            )

        return result

    async def change_subject(
        self,
        teacher_id: str,
        subject: Subject,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[TeacherResponse]:
        """Change the subject a teacher owns.

        Args:
            teacher_id: Teacher identifier.
            subject: New subject.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the teacher, NotFound or Conflict.
        """

        async def work() -> Result[TeacherResponse]:
            teacher = await lookups.get_teacher(self.db, teacher_id)
            if teacher is None:
                return NotFound("teacher", "Teacher not found")

            if not teacher.is_active:
                return Conflict(ConflictReason.TEACHER_INACTIVE, "Teacher is withdrawn")

            if teacher.subject == subject:
                return Success(self._to_response(teacher))

            if await self._has_current_assignments(teacher.id):
                return Conflict(
                    ConflictReason.SUBJECT_LOCKED,
                    "Teacher holds classroom assignments",
                )

            if await self._has_graded_students(teacher.id):
                return Conflict(
                    ConflictReason.SUBJECT_LOCKED,
                    "Teacher has graded students",
                )

            teacher.subject = subject
            await self.db.flush()

            return Success(self._to_response(teacher))

        result = await run_atomic(self.db, "change_subject", work)

        if isinstance(result, Success):
            logger.info("Changed teacher subject: %s -> %s", teacher_id, subject.value)
            await self.audit.record(
                f"Teacher {result.payload.full_name} now teaches {subject.value}",
                "change_subject",
                actor,
            )

        return result

    async def withdraw_teacher(
        self,
        teacher_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[TeacherResponse]:
        """Withdraw a teacher holding no classroom assignments.

        Args:
            teacher_id: Teacher identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the teacher, NotFound or Conflict.
        """

        async def work() -> Result[TeacherResponse]:
            teacher = await lookups.get_teacher(self.db, teacher_id)
            if teacher is None:
                return NotFound("teacher", "Teacher not found")

            if not teacher.is_active:
                return Conflict(ConflictReason.TEACHER_INACTIVE, "Teacher is already withdrawn")

            if await self._has_current_assignments(teacher.id):
                return Conflict(
                    ConflictReason.TEACHER_HAS_ASSIGNMENTS,
                    "Teacher holds classroom assignments",
                )

            teacher.is_active = False
            await self.db.flush()

            return Success(self._to_response(teacher))

        result = await run_atomic(self.db, "withdraw_teacher", work)

        if isinstance(result, Success):
            logger.info("Withdrew teacher: %s", teacher_id)
            await self.audit.record(
                f"Teacher {result.payload.full_name} withdrawn",
                "withdraw_teacher",
                actor,
            )

        return result

    async def restore_teacher(
        self,
        teacher_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[TeacherResponse]:
        """Restore a withdrawn teacher.

        Args:
            teacher_id: Teacher identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the teacher, NotFound or Conflict.
        """

        async def work() -> Result[TeacherResponse]:
            teacher = await lookups.get_teacher(self.db, teacher_id)
            if teacher is None:
                return NotFound("teacher", "Teacher not found")

            if teacher.is_active:
                return Conflict(ConflictReason.TEACHER_ALREADY_ACTIVE, "Teacher is already active")

            teacher.is_active = True
            await self.db.flush()

            return Success(self._to_response(teacher))

        result = await run_atomic(self.db, "restore_teacher", work)

        if isinstance(result, Success):
            logger.info("Restored teacher: %s", teacher_id)
            await self.audit.record(
                f"Teacher {result.payload.full_name} restored",
                "restore_teacher",
                actor,
            )

        return result

    async def get_teacher(self, teacher_id: str) -> Result[TeacherResponse]:
        """Get teacher by ID.

        Args:
            teacher_id: Teacher identifier.

        Returns:
            Success with the teacher, or NotFound.
        """
        teacher = await lookups.get_teacher(self.db, teacher_id)
        if teacher is None:
            return NotFound("teacher", "Teacher not found")
        return Success(self._to_response(teacher))

    async def _has_current_assignments(self, teacher_id: str) -> bool:
        """Check for assignments in the current course-year."""
        current = await lookups.get_current_course_year(self.db)
        if current is None:
            return False

        query = select(ClassroomTeacher.id).where(
            ClassroomTeacher.teacher_id == teacher_id,
            ClassroomTeacher.course_year_id == current.id,
        )
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def _has_graded_students(self, teacher_id: str) -> bool:
        """Check for evaluations given in any course-year."""
        query = select(Evaluation.id).where(Evaluation.teacher_id == teacher_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    def _to_response(self, teacher: Teacher) -> TeacherResponse:
        """Convert teacher model to response."""
        return TeacherResponse(
            id=teacher.id,
            first_name=teacher.first_name,
            last_name=teacher.last_name,
            national_id=teacher.national_id,
            subject=teacher.subject,
            is_active=teacher.is_active,
        )
