# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Staffing service for classroom teacher assignments.

This module provides the StaffingService class for:
- Checking whether a classroom has one active teacher per required subject
- Assigning teachers to classrooms for the active course-year
- Removing assignments
- Listing assignments and missing subjects
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.domains import lookups
from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    NotFound,
    Result,
    Success,
)
from schoolcore.infrastructure.audit import SYSTEM_ACTOR, AuditSink, LoggingAuditSink
from schoolcore.infrastructure.database.models import ClassroomTeacher, Teacher
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.classroom import AssignmentResponse
from schoolcore.models.common import Subject, Track, required_subjects, sorted_subjects

logger = logging.getLogger(__name__)


class StaffingService:
    """Service for classroom staffing.

    Staffing is complete when every required subject of a track has an
    active teacher assigned to the classroom in the given course-year.

    Attributes:
        db: Async database session.
        audit: Sink receiving an entry for each committed change.
    """

    def __init__(self, db: AsyncSession, audit: AuditSink | None = None) -> None:
        """Initialize staffing service.

        Args:
            db: Async database session.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.audit = audit or LoggingAuditSink()

    async def is_staffing_complete(
        self,
        classroom_id: str,
        track: Track,
        course_year_id: str,
    ) -> bool:
        """Check that every required subject of a track is staffed.

        Args:
            classroom_id: Classroom identifier.
            track: Track whose required subjects are checked.
            course_year_id: Course-year the assignments belong to.

        Returns:
            True if each required subject has an active teacher assigned.
        """
        missing = await self.missing_subjects(classroom_id, track, course_year_id)
        return not missing

    async def missing_subjects(
        self,
        classroom_id: str,
        track: Track,
        course_year_id: str,
    ) -> list[Subject]:
        """List required subjects of a track with no active teacher assigned.

        Args:
            classroom_id: Classroom identifier.
            track: Track whose required subjects are checked.
            course_year_id: Course-year the assignments belong to.

        Returns:
            Missing subjects in declaration order.
        """
        query = (
            select(ClassroomTeacher.subject)
            .join(Teacher, Teacher.id == ClassroomTeacher.teacher_id)
            .where(
                ClassroomTeacher.classroom_id == str(classroom_id),
                ClassroomTeacher.course_year_id == str(course_year_id),
                Teacher.is_active.is_(True),
            )
        )
        result = await self.db.execute(query)
        staffed = set(result.scalars().all())

        return sorted_subjects(required_subjects(track) - staffed)

    async def list_assignments(
        self,
        classroom_id: str,
        course_year_id: str | None = None,
    ) -> Result[list[AssignmentResponse]]:
        """List the teachers assigned to a classroom.

        Args:
            classroom_id: Classroom identifier.
            course_year_id: Course-year to list. Defaults to the current one.

        Returns:
            Success with the assignments, or NotFound.
        """
        classroom = await lookups.get_classroom(self.db, classroom_id)
        if classroom is None:
            return NotFound("classroom", "Classroom not found")

        if course_year_id is None:
            current = await lookups.get_current_course_year(self.db)
            if current is None:
                return Success([])
            course_year_id = current.id

        query = (
            select(ClassroomTeacher)
            .where(
                ClassroomTeacher.classroom_id == classroom.id,
                ClassroomTeacher.course_year_id == str(course_year_id),
            )
            .order_by(ClassroomTeacher.subject)
        )
        result = await self.db.execute(query)

        return Success([self._to_response(row) for row in result.scalars().all()])

    async def assign_teacher(
        self,
        classroom_id: str,
        teacher_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[AssignmentResponse]:
        """Assign a teacher to a classroom for the active course-year.

        The assignment covers the teacher's own subject. An already
        staffed subject must be freed with remove_assignment() first.

        Args:
            classroom_id: Classroom identifier.
            teacher_id: Teacher identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the assignment, NotFound or Conflict.
        """

        async def work() -> Result[AssignmentResponse]:
            classroom = await lookups.get_classroom(self.db, classroom_id, for_update=True)
            if classroom is None:
                return NotFound("classroom", "Classroom not found")

            teacher = await lookups.get_teacher(self.db, teacher_id)
            if teacher is None:
                return NotFound("teacher", "Teacher not found")

            course_year = await lookups.get_active_course_year(self.db)
            if course_year is None:
                return Conflict(ConflictReason.NO_ACTIVE_COURSE_YEAR, "No active course-year")

            if not teacher.is_active:
                return Conflict(ConflictReason.TEACHER_INACTIVE, "Teacher is withdrawn")

            if teacher.subject not in required_subjects(classroom.track):
                return Conflict(
                    ConflictReason.SUBJECT_NOT_IN_TRACK,
                    f"{teacher.subject.value} is not taught in the {classroom.track.value} track",
                )

            existing = await self._get_assignment_for_subject(
                classroom.id, teacher.subject, course_year.id
            )
            if existing is not None:
                if existing.teacher_id == teacher.id:
                    return Conflict(
                        ConflictReason.ALREADY_ASSIGNED,
                        "Teacher is already assigned to this classroom",
                    )
                return Conflict(
                    ConflictReason.SUBJECT_ALREADY_STAFFED,
                    f"{teacher.subject.value} already has a teacher in this classroom",
                )

            assignment = ClassroomTeacher(
                classroom_id=classroom.id,
                teacher_id=teacher.id,
                subject=teacher.subject,
                course_year_id=course_year.id,
            )
            self.db.add(assignment)
            await self.db.flush()

            return Success(self._to_response(assignment))

        result = await run_atomic(self.db, "assign_teacher", work)

        if isinstance(result, Success):
            logger.info(
                "Assigned teacher: teacher=%s, classroom=%s, subject=%s",
                teacher_id,
                classroom_id,
                result.payload.subject.value,
            )
            await self.audit.record(
                f"Teacher {teacher_id} assigned to classroom {classroom_id}",
                "assign_teacher",
                actor,
            )

        return result

    async def remove_assignment(
        self,
        classroom_id: str,
        teacher_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[AssignmentResponse]:
        """Remove a teacher's assignment from a classroom in the active course-year.

        Args:
            classroom_id: Classroom identifier.
            teacher_id: Teacher identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the removed assignment, NotFound or Conflict.
        """

        async def work() -> Result[AssignmentResponse]:
            classroom = await lookups.get_classroom(self.db, classroom_id, for_update=True)
            if classroom is None:
                return NotFound("classroom", "Classroom not found")

            course_year = await lookups.get_active_course_year(self.db)
            if course_year is None:
                return Conflict(ConflictReason.NO_ACTIVE_COURSE_YEAR, "No active course-year")

            query = select(ClassroomTeacher).where(
                ClassroomTeacher.classroom_id == classroom.id,
                ClassroomTeacher.teacher_id == str(teacher_id),
                ClassroomTeacher.course_year_id == course_year.id,
            )
            assignment = (await self.db.execute(query)).scalar_one_or_none()
            if assignment is None:
                return NotFound("assignment", "Teacher is not assigned to this classroom")

            payload = self._to_response(assignment)
            await self.db.delete(assignment)
            await self.db.flush()

            return Success(payload)

        result = await run_atomic(self.db, "remove_assignment", work)

        if isinstance(result, Success):
            logger.info("Removed assignment: teacher=%s, classroom=%s", teacher_id, classroom_id)
            await self.audit.record(
                f"Teacher {teacher_id} removed from classroom {classroom_id}",
                "remove_assignment",
                actor,
            )

        return result

    async def _get_assignment_for_subject(
        self,
        classroom_id: str,
        subject: Subject,
        course_year_id: str,
    ) -> ClassroomTeacher | None:
        """Get the assignment holding a subject in a classroom and course-year."""
        query = select(ClassroomTeacher).where(
            ClassroomTeacher.classroom_id == classroom_id,
            ClassroomTeacher.subject == subject,
            ClassroomTeacher.course_year_id == course_year_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def _to_response(self, assignment: ClassroomTeacher) -> AssignmentResponse:
        """Convert assignment model to response."""
        return AssignmentResponse(
            id=assignment.id,
            classroom_id=assignment.classroom_id,
            teacher_id=assignment.teacher_id,
            subject=assignment.subject,
            course_year_id=assignment.course_year_id,
        )
