# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for binding students to classrooms and tracks.

This module provides the EnrollmentService class for:
- Enrolling a student in a classroom and track for the active course-year
- Moving an enrollment to another classroom during the re-enrollment window
- Listing a student's enrollments

Every check runs inside the same transaction as the write, with the
target classroom row locked, so two requests cannot both take the last
seat of a classroom.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.core.config import ProgressionSettings, get_settings
from schoolcore.domains import lookups
from schoolcore.domains.completion import TrackCompletionService
from schoolcore.domains.enrollment.window import EnrollmentWindow, MonthEnrollmentWindow
from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    NotFound,
    Result,
    Success,
)
from schoolcore.domains.staffing import StaffingService
from schoolcore.infrastructure.audit import SYSTEM_ACTOR, AuditSink, LoggingAuditSink
from schoolcore.infrastructure.database.models import CourseYear, Enrollment, Evaluation
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.common import Track, required_subjects
from schoolcore.models.enrollment import EnrollmentResponse
from schoolcore.utils.datetime import Clock, SystemClock, ensure_utc

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service for student enrollments.

    Attributes:
        db: Async database session.
        settings: Progression limits (capacity, lifetime enrollments).
        clock: Source of enrollment timestamps.
        window: Re-enrollment window for update_enrollment().
        audit: Sink receiving an entry for each committed change.
        staffing: Staffing completeness oracle.
        completion: Track completion oracle.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressionSettings | None = None,
        clock: Clock | None = None,
        window: EnrollmentWindow | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            settings: Progression limits. Defaults to application settings.
            clock: Time source. Defaults to the system clock.
            window: Re-enrollment window. Defaults to the configured months.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.settings = settings or get_settings().progression
        self.clock = clock or SystemClock()
        self.window = window or MonthEnrollmentWindow(self.settings.reenrollment_months)
        self.audit = audit or LoggingAuditSink()
        self.staffing = StaffingService(db, audit=self.audit)
        self.completion = TrackCompletionService(db, settings=self.settings)

    async def enroll(
        self,
        student_id: str,
        classroom_id: str,
        track: Track,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[EnrollmentResponse]:
        """Enroll a student in a classroom and track for the active course-year.

        A student holds at most one enrollment per course-year. A restored
        student whose seat was released by withdrawal is re-seated through
        the same row, which does not count again toward the lifetime limit.

        Args:
            student_id: Student identifier.
            classroom_id: Classroom identifier.
            track: Track to enroll in.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the enrollment, NotFound or Conflict.
        """

        async def work() -> Result[EnrollmentResponse]:
            student = await lookups.get_student(self.db, student_id, for_update=True)
            if student is None:
                return NotFound("student", "Student not found")

            classroom = await lookups.get_classroom(self.db, classroom_id, for_update=True)
            if classroom is None:
                return NotFound("classroom", "Classroom not found")

            course_year = await self._get_writable_course_year()
            if not isinstance(course_year, CourseYear):
                return course_year

            # One enrollment per student and course-year. A withdrawal
            # releases the seat but keeps the row, which re-enrollment reuses.
            existing = await lookups.get_year_enrollment(self.db, student.id, course_year.id)
            released = existing is not None and existing.classroom_id != student.classroom_id
            if existing is not None and (not released or existing.track != track):
                return Conflict(
                    ConflictReason.DUPLICATE_ENROLLMENT,
                    "Student is already enrolled for the current course-year",
                )

            if classroom.track != track:
                return Conflict(
                    ConflictReason.TRACK_MISMATCH,
                    "Classroom track does not match the requested track",
                )

            seats = await lookups.count_active_seats(self.db, classroom.id, course_year.id)
            if seats >= self.settings.classroom_capacity:
                return Conflict(
                    ConflictReason.CLASSROOM_FULL,
                    f"Classroom is full ({self.settings.classroom_capacity} students)",
                )

            if not await self.staffing.is_staffing_complete(classroom.id, track, course_year.id):
                return Conflict(
                    ConflictReason.INCOMPLETE_STAFFING,
                    "Classroom has no complete teaching staff for this track",
                )

            if not student.is_active:
                return Conflict(ConflictReason.STUDENT_INACTIVE, "Student is withdrawn")

            lifetime = await self._count_enrollments(student.id)
            if existing is None and lifetime >= self.settings.max_lifetime_enrollments:
                return Conflict(
                    ConflictReason.ENROLLMENT_LIMIT_REACHED,
                    f"Student reached the limit of {self.settings.max_lifetime_enrollments} enrollments",
                )

            if not await self._prior_year_resolved(student.id, track):
                return Conflict(
                    ConflictReason.PRIOR_YEAR_UNRESOLVED,
                    "Student has unevaluated subjects from the previous year",
                )

            # A completed track leaves only the other one open
            completed = await self.completion.completed_track(student.id)
            if completed is not None and completed == track:
                return Conflict(
                    ConflictReason.TRACK_ALREADY_COMPLETED,
                    f"Student already completed the {completed.value} track",
                )

            if existing is None:
                enrollment = Enrollment(
                    student_id=student.id,
                    classroom_id=classroom.id,
                    track=track,
                    course_year_id=course_year.id,
                    enrollment_date=self.clock.now(),
                )
                self.db.add(enrollment)
            else:
                enrollment = existing
                enrollment.classroom_id = classroom.id
                enrollment.enrollment_date = self.clock.now()
            student.classroom_id = classroom.id
            student.track = track
            await self.db.flush()

            return Success(self._to_response(enrollment))

        result = await run_atomic(self.db, "enroll", work)

        if isinstance(result, Success):
            logger.info(
                "Enrolled student: student=%s, classroom=%s, track=%s",
                student_id,
                classroom_id,
                track.value,
            )
            await self.audit.record(
                f"Student {student_id} enrolled in classroom {classroom_id} ({track.value})",
                "enroll",
                actor,
            )
        else:
            logger.debug("Enrollment rejected: student=%s, result=%r", student_id, result)

        return result

    async def update_enrollment(
        self,
        enrollment_id: str,
        new_classroom_id: str,
        track: Track,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[EnrollmentResponse]:
        """Move an enrollment to another classroom.

        Only allowed while the re-enrollment window is open. The enrollment
        is re-stamped into the active course-year with the current date.

        Args:
            enrollment_id: Enrollment identifier.
            new_classroom_id: Target classroom identifier.
            track: Track of the enrollment. Must match the enrollment's track.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the updated enrollment, NotFound or Conflict.
        """
        now = self.clock.now()
        if not self.window.is_open(now):
            return Conflict(
                ConflictReason.ENROLLMENT_WINDOW_CLOSED,
                "Enrollments can only be changed during the re-enrollment window",
            )

        async def work() -> Result[EnrollmentResponse]:
            enrollment = await self._get_enrollment(enrollment_id)
            if enrollment is None:
                return NotFound("enrollment", "Enrollment not found")

            student = await lookups.get_student(self.db, enrollment.student_id, for_update=True)
            if student is None:
                return NotFound("student", "Student not found")

            if not student.is_active:
                return Conflict(ConflictReason.STUDENT_INACTIVE, "Student is withdrawn")

            classroom = await lookups.get_classroom(self.db, new_classroom_id, for_update=True)
            if classroom is None:
                return NotFound("classroom", "Classroom not found")

            course_year = await self._get_writable_course_year()
            if not isinstance(course_year, CourseYear):
                return course_year

            if track != enrollment.track or classroom.track != track:
                return Conflict(
                    ConflictReason.TRACK_MISMATCH,
                    "Classroom track does not match the enrollment track",
                )

            if enrollment.course_year_id != course_year.id and await lookups.get_year_enrollment(
                self.db, student.id, course_year.id
            ):
                return Conflict(
                    ConflictReason.DUPLICATE_ENROLLMENT,
                    "Student is already enrolled for the current course-year",
                )

            # Staying in the classroom the student already sits in takes no new seat
            seated_here = classroom.id == enrollment.classroom_id == student.classroom_id
            if not seated_here:
                seats = await lookups.count_active_seats(self.db, classroom.id, course_year.id)
                if seats >= self.settings.classroom_capacity:
                    return Conflict(
                        ConflictReason.CLASSROOM_FULL,
                        f"Classroom is full ({self.settings.classroom_capacity} students)",
                    )

            if not await self.staffing.is_staffing_complete(classroom.id, track, course_year.id):
                return Conflict(
                    ConflictReason.INCOMPLETE_STAFFING,
                    "Classroom has no complete teaching staff for this track",
                )

            enrollment.classroom_id = classroom.id
            enrollment.course_year_id = course_year.id
            enrollment.enrollment_date = now
            student.classroom_id = classroom.id
            await self.db.flush()

            return Success(self._to_response(enrollment))

        result = await run_atomic(self.db, "update_enrollment", work)

        if isinstance(result, Success):
            logger.info(
                "Updated enrollment: enrollment=%s, classroom=%s",
                enrollment_id,
                new_classroom_id,
            )
            await self.audit.record(
                f"Enrollment {enrollment_id} moved to classroom {new_classroom_id}",
                "update_enrollment",
                actor,
            )

        return result

    async def list_student_enrollments(self, student_id: str) -> Result[list[EnrollmentResponse]]:
        """List a student's enrollments, most recent first.

        Args:
            student_id: Student identifier.

        Returns:
            Success with the enrollments, or NotFound.
        """
        student = await lookups.get_student(self.db, student_id)
        if student is None:
            return NotFound("student", "Student not found")

        query = (
            select(Enrollment)
            .where(Enrollment.student_id == student.id)
            .order_by(Enrollment.enrollment_date.desc())
        )
        result = await self.db.execute(query)

        return Success([self._to_response(row) for row in result.scalars().all()])

    async def _get_writable_course_year(self) -> CourseYear | NotFound | Conflict:
        """Get the active course-year, or the failure explaining its absence."""
        current = await lookups.get_current_course_year(self.db)
        if current is None:
            return NotFound("course_year", "No course-year exists")
        if not current.is_active:
            return Conflict(ConflictReason.NO_ACTIVE_COURSE_YEAR, "No active course-year")
        return current

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment | None:
        """Get enrollment by ID."""
        query = select(Enrollment).where(Enrollment.id == str(enrollment_id))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _count_enrollments(self, student_id: str) -> int:
        """Count every enrollment a student ever held."""
        query = select(func.count(Enrollment.id)).where(Enrollment.student_id == student_id)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def _prior_year_resolved(self, student_id: str, track: Track) -> bool:
        """Check the previous calendar year left no required subject unevaluated.

        A student without evaluations dated in the previous calendar year
        passes. Otherwise every required subject of the track must have
        been evaluated during that year.
        """
        prior_year = self.clock.now().year - 1

        query = select(Evaluation.subject, Evaluation.evaluation_date).where(
            Evaluation.student_id == student_id
        )
        result = await self.db.execute(query)

        evaluated = {
            subject for subject, evaluated_at in result.all() if evaluated_at.year == prior_year
        }
        if not evaluated:
            return True
        return required_subjects(track) <= evaluated

    def _to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        """Convert enrollment model to response."""
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            classroom_id=enrollment.classroom_id,
            track=enrollment.track,
            course_year_id=enrollment.course_year_id,
            enrollment_date=ensure_utc(enrollment.enrollment_date),
        )
