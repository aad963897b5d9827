# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Evaluation service for grading students.

This module provides the EvaluationService class for:
- Creating, updating and deleting grades in the active course-year
- Finding enrolled students still missing required evaluations
- Listing a student's evaluations

Grades of closed course-years are locked and grades dated in an earlier
calendar year cannot be deleted.
"""

from __future__ import annotations

import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.core.config import ProgressionSettings, get_settings
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
from schoolcore.infrastructure.database.models import (
    ClassroomTeacher,
    CourseYear,
    Enrollment,
    Evaluation,
    Student,
)
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.common import Subject, required_subjects, sorted_subjects
from schoolcore.models.evaluation import EvaluationResponse, IncompleteStudent
from schoolcore.utils.datetime import Clock, SystemClock, ensure_utc

logger = logging.getLogger(__name__)


class EvaluationService:
    """Service for student evaluations.

    Attributes:
        db: Async database session.
        settings: Progression limits (grade scale).
        clock: Source of evaluation timestamps.
        audit: Sink receiving an entry for each committed change.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressionSettings | None = None,
        clock: Clock | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        """Initialize evaluation service.

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

    async def create_evaluation(
        self,
        student_id: str,
        teacher_id: str,
        grade: int,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[EvaluationResponse]:
        """Grade a student in the teacher's subject for the active course-year.

        Args:
            student_id: Student identifier.
            teacher_id: Teacher identifier. The teacher's subject is graded.
            grade: Grade on the configured scale.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the evaluation, ValidationError, NotFound or Conflict.
        """
        invalid = self._validate_grade(grade)
        if invalid is not None:
            return invalid

        async def work() -> Result[EvaluationResponse]:
            teacher = await lookups.get_teacher(self.db, teacher_id)
            if teacher is None or not teacher.is_active:
                return NotFound("teacher", "Teacher not found or not active")

            student = await lookups.get_student(self.db, student_id)
            if student is None or not student.is_active:
                return NotFound("student", "Student not found or not active")

            course_year = await lookups.get_active_course_year(self.db, for_update=True, read=True)
            if course_year is None:
                return Conflict(ConflictReason.NO_ACTIVE_COURSE_YEAR, "No active course-year")

            enrollment = await lookups.get_seated_enrollment(self.db, student, course_year.id)
            if enrollment is None:
                return Conflict(
                    ConflictReason.NOT_ENROLLED,
                    "Student is not enrolled in the current course-year",
                )

            if teacher.subject not in required_subjects(enrollment.track):
                return Conflict(
                    ConflictReason.SUBJECT_NOT_IN_TRACK,
                    f"Student does not take {teacher.subject.value}",
                )

            teaches = await self._teaches_classroom(teacher.id, enrollment.classroom_id, course_year.id)
            if not teaches:
                return Conflict(
                    ConflictReason.TEACHER_NOT_ASSIGNED,
                    "Teacher is not assigned to the student's classroom for the current course-year",
                )

            if await self._get_for_subject(student.id, teacher.subject, course_year.id):
                return Conflict(
                    ConflictReason.DUPLICATE_EVALUATION,
                    "Student already has an evaluation for this subject in the current course-year",
                )

            evaluation = Evaluation(
                student_id=student.id,
                teacher_id=teacher.id,
                subject=teacher.subject,
                course_year_id=course_year.id,
                grade=grade,
                evaluation_date=self.clock.now(),
                editable=True,
            )
            self.db.add(evaluation)
            await self.db.flush()

            return Success(self._to_response(evaluation))

        result = await run_atomic(self.db, "create_evaluation", work)

        if isinstance(result, Success):
            logger.info(
                "Created evaluation: student=%s, subject=%s, grade=%d",
                student_id,
                result.payload.subject.value,
                grade,
            )
            await self.audit.record(
                f"Evaluation created: student {student_id}, "
                f"{result.payload.subject.value}, grade {grade}",
                "create_evaluation",
                actor,
            )

        return result

    async def update_evaluation(
        self,
        evaluation_id: str,
        new_grade: int,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[EvaluationResponse]:
        """Overwrite the grade of an evaluation from the active course-year.

        Args:
            evaluation_id: Evaluation identifier.
            new_grade: Grade on the configured scale.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the evaluation, ValidationError, NotFound or Conflict.
        """
        invalid = self._validate_grade(new_grade)
        if invalid is not None:
            return invalid

        async def work() -> Result[EvaluationResponse]:
            evaluation = await self._get_by_id(evaluation_id)
            if evaluation is None:
                return NotFound("evaluation", "Evaluation not found")

            course_year = await lookups.get_active_course_year(self.db, for_update=True, read=True)
            if course_year is None or evaluation.course_year_id != course_year.id:
                return Conflict(
                    ConflictReason.STALE_EVALUATION,
                    "Evaluations of previous course-years cannot be changed",
                )

            if not evaluation.editable:
                return Conflict(ConflictReason.EVALUATION_LOCKED, "Evaluation is locked")

            evaluation.grade = new_grade
            evaluation.evaluation_date = self.clock.now()
            await self.db.flush()

            return Success(self._to_response(evaluation))

        result = await run_atomic(self.db, "update_evaluation", work)

        if isinstance(result, Success):
            logger.info("Updated evaluation: %s, grade=%d", evaluation_id, new_grade)
            await self.audit.record(
                f"Evaluation {evaluation_id} changed to grade {new_grade}",
                "update_evaluation",
                actor,
            )

        return result

    async def delete_evaluation(
        self,
        evaluation_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[EvaluationResponse]:
        """Delete an evaluation dated in the current calendar year.

        Args:
            evaluation_id: Evaluation identifier.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the deleted evaluation, NotFound or Conflict.
        """

        async def work() -> Result[EvaluationResponse]:
            evaluation = await self._get_by_id(evaluation_id)
            if evaluation is None:
                return NotFound("evaluation", "Evaluation not found")

            if evaluation.evaluation_date.year < self.clock.now().year:
                return Conflict(
                    ConflictReason.HISTORICAL_EVALUATION,
                    "Evaluations from previous years cannot be deleted",
                )

            if not evaluation.editable:
                return Conflict(ConflictReason.EVALUATION_LOCKED, "Evaluation is locked")

            payload = self._to_response(evaluation)
            await self.db.delete(evaluation)
            await self.db.flush()

            return Success(payload)

        result = await run_atomic(self.db, "delete_evaluation", work)

        if isinstance(result, Success):
            logger.info("Deleted evaluation: %s", evaluation_id)
            await self.audit.record(
                f"Evaluation {evaluation_id} deleted",
                "delete_evaluation",
                actor,
            )

        return result

    async def find_incomplete_students(
        self,
        course_year_id: str,
    ) -> Result[list[IncompleteStudent]]:
        """List actively enrolled students missing a required evaluation.

        Args:
            course_year_id: Course-year identifier.

        Returns:
            Success with the non-compliant students, or NotFound.
        """
        course_year = await self.db.get(CourseYear, str(course_year_id))
        if course_year is None:
            return NotFound("course_year", "Course-year not found")

        return Success(await self.incomplete_students(course_year.id))

    async def incomplete_students(self, course_year_id: str) -> list[IncompleteStudent]:
        """Collect students whose track is not fully evaluated in a course-year.

        Each enrollment is checked against the required subjects of its
        own track. Only enrollments the student still sits in count, so
        withdrawn students and restored students awaiting re-enrollment are
        skipped.

        Args:
            course_year_id: Course-year identifier.

        Returns:
            Non-compliant students ordered by last and first name.
        """
        enrolled_query = (
            select(Enrollment, Student)
            .join(Student, Student.id == Enrollment.student_id)
            .where(
                Enrollment.course_year_id == course_year_id,
                Student.is_active.is_(True),
                Student.classroom_id == Enrollment.classroom_id,
            )
            .order_by(Student.last_name, Student.first_name)
        )
        enrolled = (await self.db.execute(enrolled_query)).all()

        evaluated_query = select(Evaluation.student_id, Evaluation.subject).where(
            Evaluation.course_year_id == course_year_id
        )
        evaluated: dict[str, set[Subject]] = defaultdict(set)
        for student_id, subject in (await self.db.execute(evaluated_query)).all():
            evaluated[student_id].add(subject)

        incomplete = []
        for enrollment, student in enrolled:
            missing = required_subjects(enrollment.track) - evaluated[student.id]
            if missing:
                incomplete.append(
                    IncompleteStudent(
                        student_id=student.id,
                        full_name=student.full_name,
                        track=enrollment.track,
                        missing_subjects=sorted_subjects(missing),
                    )
                )

        return incomplete

    async def list_student_evaluations(
        self,
        student_id: str,
        subject: Subject | None = None,
    ) -> Result[list[EvaluationResponse]]:
        """List a student's evaluations, most recent first.

        Args:
            student_id: Student identifier.
            subject: Optional subject filter.

        Returns:
            Success with the evaluations, or NotFound.
        """
        student = await lookups.get_student(self.db, student_id)
        if student is None:
            return NotFound("student", "Student not found")

        query = select(Evaluation).where(Evaluation.student_id == student.id)
        if subject is not None:
            query = query.where(Evaluation.subject == subject)
        query = query.order_by(Evaluation.evaluation_date.desc())

        result = await self.db.execute(query)

        return Success([self._to_response(row) for row in result.scalars().all()])

    def _validate_grade(self, grade: int) -> ValidationError | None:
        """Reject grades outside the configured scale."""
        low, high = self.settings.min_grade, self.settings.max_grade
        if isinstance(grade, bool) or not isinstance(grade, int) or not low <= grade <= high:
            return ValidationError.single("grade", f"Grade must be between {low} and {high}")
        return None

    async def _get_by_id(self, evaluation_id: str) -> Evaluation | None:
        """Get evaluation by ID."""
        query = select(Evaluation).where(Evaluation.id == str(evaluation_id))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_for_subject(
        self,
        student_id: str,
        subject: Subject,
        course_year_id: str,
    ) -> Evaluation | None:
        """Get the evaluation of a student in a subject for a course-year."""
        query = select(Evaluation).where(
            Evaluation.student_id == student_id,
            Evaluation.subject == subject,
            Evaluation.course_year_id == course_year_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _teaches_classroom(
        self,
        teacher_id: str,
        classroom_id: str | None,
        course_year_id: str,
    ) -> bool:
        """Check that a teacher is assigned to a classroom in a course-year."""
        if classroom_id is None:
            return False
        query = select(ClassroomTeacher.id).where(
            ClassroomTeacher.teacher_id == teacher_id,
            ClassroomTeacher.classroom_id == classroom_id,
            ClassroomTeacher.course_year_id == course_year_id,
        )
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    def _to_response(self, evaluation: Evaluation) -> EvaluationResponse:
        """Convert evaluation model to response."""
        return EvaluationResponse(
            id=evaluation.id,
            student_id=evaluation.student_id,
            teacher_id=evaluation.teacher_id,
            subject=evaluation.subject,
            course_year_id=evaluation.course_year_id,
            grade=evaluation.grade,
            evaluation_date=ensure_utc(evaluation.evaluation_date),
            editable=evaluation.editable,
        )
