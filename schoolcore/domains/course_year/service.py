# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course-year service for the school-year lifecycle.

This module provides the CourseYearService class for:
- Opening a course-year and carrying teacher assignments into it
- Closing the active course-year once every enrolled student is graded
- Resolving the current course-year
- Listing course-years

A course-year moves Planned -> Active -> Closed and never back. At most
one course-year is active at any time.
"""

from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.core.config import ProgressionSettings, get_settings
from schoolcore.domains import lookups
from schoolcore.domains.evaluation import EvaluationService
from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    NotFound,
    Result,
    Success,
    ValidationError,
)
from schoolcore.infrastructure.audit import SYSTEM_ACTOR, AuditSink, LoggingAuditSink
from schoolcore.infrastructure.database.models import (
    Classroom,
    ClassroomTeacher,
    CourseYear,
    Evaluation,
    Teacher,
)
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.common import required_subjects
from schoolcore.models.course_year import CourseYearCreateRequest, CourseYearResponse
from schoolcore.utils.datetime import Clock, SystemClock, add_years, ensure_utc

logger = logging.getLogger(__name__)


class CourseYearService:
    """Service for the course-year lifecycle.

    Attributes:
        db: Async database session.
        settings: Progression limits (maximum course-year span).
        clock: Source of opening and closing dates.
        audit: Sink receiving an entry for each committed change.
        evaluations: Closing gate over missing evaluations.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressionSettings | None = None,
        clock: Clock | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        """Initialize course-year service.

        Args:
            db: Async database session.
            settings: Progression limits. Defaults to application settings.
            clock: Time source. Defaults to the system clock.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.settings = settings or get_settings().progression
        self.clock = clock or SystemClock()
        self.audit = audit or LoggingAuditSink()
        self.evaluations = EvaluationService(
            db, settings=self.settings, clock=self.clock, audit=self.audit
        )

    async def open_course_year(
        self,
        name: str,
        start_date: date,
        end_date: date,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[CourseYearResponse]:
        """Open a new active course-year.

        Staffing of the most recent course-year is carried into the new one.
        Assignments of withdrawn teachers are dropped, and so are those whose
        subject no longer fits the teacher or the classroom's track.

        Args:
            name: Display name, e.g. "2025-2026".
            start_date: First day of the course-year.
            end_date: Last day of the course-year.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the new course-year, ValidationError or Conflict.
        """
        try:
            request = CourseYearCreateRequest(name=name, start_date=start_date, end_date=end_date)
        except PydanticValidationError as e:
            return ValidationError.from_pydantic(e)

        invalid = self._validate_dates(request.start_date, request.end_date)
        if invalid is not None:
            return invalid

        async def work() -> Result[CourseYearResponse]:
            if await lookups.get_active_course_year(self.db) is not None:
                return Conflict(
                    ConflictReason.ACTIVE_COURSE_YEAR_EXISTS,
                    "A course-year is already active",
                )

            overlap_query = select(CourseYear.id).where(
                CourseYear.start_date <= request.end_date,
                CourseYear.end_date >= request.start_date,
            )
            if (await self.db.execute(overlap_query.limit(1))).scalar_one_or_none():
                return Conflict(
                    ConflictReason.COURSE_YEAR_OVERLAP,
                    "Course-year dates overlap with an existing course-year",
                )

            previous = await lookups.get_current_course_year(self.db)

            course_year = CourseYear(
                name=request.name,
                start_date=request.start_date,
                end_date=request.end_date,
                is_active=True,
                closed_at=None,
            )
            self.db.add(course_year)
            await self.db.flush()

            carried = 0
            if previous is not None:
                carried = await self._carry_forward_assignments(previous.id, course_year.id)
            logger.debug("Carried %d assignments into %s", carried, course_year.id)

            return Success(self._to_response(course_year))

        result = await run_atomic(self.db, "open_course_year", work)

        if isinstance(result, Success):
            logger.info("Opened course-year: %s (%s)", result.payload.name, result.payload.id)
            await self.audit.record(
                f"Course-year {result.payload.name} opened",
                "open_course_year",
                actor,
            )

        return result

    async def close_course_year(
        self,
        course_year_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[CourseYearResponse]:
        """Close the active course-year.

        Every actively enrolled student must hold an evaluation in each
        required subject of their track. On success the year's end date is
        stamped with the closing date and its evaluations are locked.

        Args:
            course_year_id: Course-year identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the closed course-year, NotFound or Conflict. The
            incomplete-evaluations Conflict lists the students in details.
        """

        async def work() -> Result[CourseYearResponse]:
            query = (
                select(CourseYear)
                .where(CourseYear.id == str(course_year_id))
                .with_for_update()
            )
            course_year = (await self.db.execute(query)).scalar_one_or_none()
            if course_year is None:
                return NotFound("course_year", "Course-year not found")

            if not course_year.is_active:
                return Conflict(ConflictReason.COURSE_YEAR_CLOSED, "Course-year is already closed")

            now = self.clock.now()
            if now.date() < course_year.start_date:
                return Conflict(
                    ConflictReason.COURSE_YEAR_NOT_STARTED,
                    "Course-year cannot be closed before it starts",
                )

            incomplete = await self.evaluations.incomplete_students(course_year.id)
            if incomplete:
                return Conflict(
                    ConflictReason.INCOMPLETE_EVALUATIONS,
                    f"{len(incomplete)} students are missing evaluations",
                    details=incomplete,
                )

            course_year.is_active = False
            course_year.end_date = now.date()
            course_year.closed_at = now
            await self.db.execute(
                update(Evaluation)
                .where(Evaluation.course_year_id == course_year.id)
                .values(editable=False)
            )
            await self.db.flush()

            return Success(self._to_response(course_year))

        result = await run_atomic(self.db, "close_course_year", work)

        if isinstance(result, Success):
            logger.info("Closed course-year: %s", course_year_id)
            await self.audit.record(
                f"Course-year {result.payload.name} closed",
                "close_course_year",
                actor,
            )
        elif isinstance(result, Conflict):
            logger.info("Course-year %s not closed: %s", course_year_id, result.reason.value)

        return result

    async def get_current(self) -> CourseYearResponse | None:
        """Get the current course-year.

        Returns:
            The active course-year, else the most recently started one,
            else None. A returned closed year is for reading only.
        """
        course_year = await lookups.get_current_course_year(self.db)
        if course_year is None:
            return None
        return self._to_response(course_year)

    async def get_course_year(self, course_year_id: str) -> Result[CourseYearResponse]:
        """Get course-year by ID.

        Args:
            course_year_id: Course-year identifier.

        Returns:
            Success with the course-year, or NotFound.
        """
        course_year = await self.db.get(CourseYear, str(course_year_id))
        if course_year is None:
            return NotFound("course_year", "Course-year not found")
        return Success(self._to_response(course_year))

    async def list_course_years(self) -> list[CourseYearResponse]:
        """List all course-years, most recent first."""
        query = select(CourseYear).order_by(CourseYear.start_date.desc())
        result = await self.db.execute(query)
        return [self._to_response(row) for row in result.scalars().all()]

    def _validate_dates(self, start_date: date, end_date: date) -> ValidationError | None:
        """Check course-year dates against today and the maximum span."""
        today = self.clock.now().date()
        errors: dict[str, list[str]] = {}

        if start_date < today:
            errors.setdefault("start_date", []).append("Start date is in the past")
        if end_date < today:
            errors.setdefault("end_date", []).append("End date is in the past")

        span = self.settings.max_course_year_span_years
        if end_date > add_years(start_date, span):
            errors.setdefault("end_date", []).append(
                f"Course-year cannot span more than {span} years"
            )

        if errors:
            return ValidationError(field_errors=errors)
        return None

    async def _carry_forward_assignments(self, source_year_id: str, target_year_id: str) -> int:
        """Copy the still-valid assignments of one course-year into another.

        Returns:
            Number of assignments created.
        """
        query = (
            select(ClassroomTeacher, Teacher, Classroom)
            .join(Teacher, Teacher.id == ClassroomTeacher.teacher_id)
            .join(Classroom, Classroom.id == ClassroomTeacher.classroom_id)
            .where(
                ClassroomTeacher.course_year_id == source_year_id,
                Teacher.is_active.is_(True),
            )
        )
        result = await self.db.execute(query)

        carried = 0
        for assignment, teacher, classroom in result.all():
            if assignment.subject != teacher.subject:
                continue
            if assignment.subject not in required_subjects(classroom.track):
                continue
            self.db.add(
                ClassroomTeacher(
                    classroom_id=assignment.classroom_id,
                    teacher_id=assignment.teacher_id,
                    subject=assignment.subject,
                    course_year_id=target_year_id,
                )
            )
            carried += 1

        await self.db.flush()
        return carried

    def _to_response(self, course_year: CourseYear) -> CourseYearResponse:
        """Convert course-year model to response."""
        return CourseYearResponse(
            id=course_year.id,
            name=course_year.name,
            start_date=course_year.start_date,
            end_date=course_year.end_date,
            is_active=course_year.is_active,
            closed_at=ensure_utc(course_year.closed_at),
        )
