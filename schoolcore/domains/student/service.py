# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service for admissions and withdrawals.

This module provides the StudentService class for:
- Admitting students
- Withdrawing and restoring students
- Student lookup

Withdrawal keeps the student's enrollment and evaluation history. A
restored student keeps no classroom and must enroll again.
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
from schoolcore.infrastructure.database.models import Student
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.people import StudentAdmissionRequest, StudentResponse
from schoolcore.utils.datetime import Clock, SystemClock

logger = logging.getLogger(__name__)


class StudentService:
    """Service for the student registry.

    Attributes:
        db: Async database session.
        clock: Source of withdrawal and restoration dates.
        audit: Sink receiving an entry for each committed change.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        """Initialize student service.

        Args:
            db: Async database session.
            clock: Time source. Defaults to the system clock.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.audit = audit or LoggingAuditSink()

    async def admit_student(
        self,
        first_name: str,
        last_name: str,
        national_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[StudentResponse]:
        """Admit a new student.

        Args:
            first_name: Given name.
            last_name: Family name.
            national_id: 11-digit national id, unique across students and teachers.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the student, ValidationError or Conflict.
        """
        try:
            request = StudentAdmissionRequest(
                first_name=first_name,
                last_name=last_name,
                national_id=national_id,
            )
        except PydanticValidationError as e:
            return ValidationError.from_pydantic(e)

        async def work() -> Result[StudentResponse]:
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

            student = Student(
                first_name=request.first_name,
                last_name=request.last_name,
                national_id=request.national_id,
                is_active=True,
                track=None,
                classroom_id=None,
                withdrawal_date=None,
                restoration_date=None,
            )
            self.db.add(student)
            await self.db.flush()

            return Success(self._to_response(student))

        result = await run_atomic(self.db, "admit_student", work)

        if isinstance(result, Success):
            logger.info("Admitted student: %s", result.payload.id)
            await self.audit.record(
                f"Student {result.payload.full_name} admitted",
                "admit_student",
                actor,
            )

        return result

    async def withdraw_student(
        self,
        student_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[StudentResponse]:
        """Withdraw a student from the school.

        Args:
            student_id: Student identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the student, NotFound or Conflict.
        """

        async def work() -> Result[StudentResponse]:
            student = await lookups.get_student(self.db, student_id)
            if student is None:
                return NotFound("student", "Student not found")

            if not student.is_active:
                return Conflict(ConflictReason.STUDENT_INACTIVE, "Student is already withdrawn")

            student.is_active = False
            student.classroom_id = None
            student.withdrawal_date = self.clock.now().date()
            await self.db.flush()

            return Success(self._to_response(student))

        result = await run_atomic(self.db, "withdraw_student", work)

        if isinstance(result, Success):
            logger.info("Withdrew student: %s", student_id)
            await self.audit.record(
                f"Student {result.payload.full_name} withdrawn",
                "withdraw_student",
                actor,
            )

        return result

    async def restore_student(
        self,
        student_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[StudentResponse]:
        """Restore a withdrawn student.

        Args:
            student_id: Student identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the student, NotFound or Conflict.
        """

        async def work() -> Result[StudentResponse]:
            student = await lookups.get_student(self.db, student_id)
            if student is None:
                return NotFound("student", "Student not found")

            if student.is_active:
                return Conflict(ConflictReason.STUDENT_ALREADY_ACTIVE, "Student is already active")

            student.is_active = True
            student.withdrawal_date = None
            student.restoration_date = self.clock.now().date()
            await self.db.flush()

            return Success(self._to_response(student))

        result = await run_atomic(self.db, "restore_student", work)

        if isinstance(result, Success):
            logger.info("Restored student: %s", student_id)
            await self.audit.record(
                f"Student {result.payload.full_name} restored",
                "restore_student",
                actor,
            )

        return result

    async def get_student(self, student_id: str) -> Result[StudentResponse]:
        """Get student by ID.

        Args:
            student_id: Student identifier.

        Returns:
            Success with the student, or NotFound.
        """
        student = await lookups.get_student(self.db, student_id)
        if student is None:
            return NotFound("student", "Student not found")
        return Success(self._to_response(student))

    async def list_students(self, include_inactive: bool = False) -> list[StudentResponse]:
        """List students ordered by name.

        Args:
            include_inactive: Whether to include withdrawn students.

        Returns:
            List of students.
        """
        query = select(Student)
        if not include_inactive:
            query = query.where(Student.is_active.is_(True))
        query = query.order_by(Student.last_name, Student.first_name)

        result = await self.db.execute(query)
        return [self._to_response(row) for row in result.scalars().all()]

    def _to_response(self, student: Student) -> StudentResponse:
        """Convert student model to response."""
        return StudentResponse(
            id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            national_id=student.national_id,
            is_active=student.is_active,
            track=student.track,
            classroom_id=student.classroom_id,
            withdrawal_date=student.withdrawal_date,
            restoration_date=student.restoration_date,
        )
