# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the course-year lifecycle."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    NotFound,
    Success,
    ValidationError,
)
from schoolcore.infrastructure.database.models import CourseYear, Evaluation
from schoolcore.models.common import Subject, Track


class TestCourseYearOpen:
    """Tests for opening course-years."""

    @pytest.mark.asyncio
    async def test_open_course_year_success(self, engine, audit):
        """Test a valid course-year opens as the active one."""
        result = await engine.course_years.open_course_year(
            "2025", date(2025, 1, 10), date(2025, 12, 20)
        )

        assert isinstance(result, Success)
        assert result.payload.is_active is True
        assert result.payload.closed_at is None
        assert audit.operations == ["open_course_year"]

    @pytest.mark.asyncio
    async def test_open_rejects_start_in_past(self, engine):
        """Test start date before today is a validation error."""
        result = await engine.course_years.open_course_year(
            "2024-2025", date(2024, 9, 1), date(2025, 6, 30)
        )

        assert isinstance(result, ValidationError)
        assert "start_date" in result.field_errors

    @pytest.mark.asyncio
    async def test_open_rejects_end_not_after_start(self, engine):
        """Test a zero-length course-year is a validation error."""
        result = await engine.course_years.open_course_year(
            "empty", date(2025, 3, 1), date(2025, 3, 1)
        )

        assert isinstance(result, ValidationError)

    @pytest.mark.asyncio
    async def test_open_rejects_span_above_maximum(self, engine):
        """Test a course-year longer than two years is rejected."""
        result = await engine.course_years.open_course_year(
            "long", date(2025, 2, 1), date(2027, 2, 2)
        )

        assert isinstance(result, ValidationError)
        assert "end_date" in result.field_errors

    @pytest.mark.asyncio
    async def test_open_accepts_exact_maximum_span(self, engine):
        """Test a course-year of exactly two years is accepted."""
        result = await engine.course_years.open_course_year(
            "two years", date(2025, 2, 1), date(2027, 2, 1)
        )

        assert isinstance(result, Success)

    @pytest.mark.asyncio
    async def test_open_rejects_second_active_year(self, engine, school):
        """Test only one course-year can be active."""
        await school.open_year(date(2025, 1, 10), date(2025, 6, 30))

        result = await engine.course_years.open_course_year(
            "next", date(2025, 9, 1), date(2026, 6, 30)
        )

        assert isinstance(result, Conflict)
        assert result.reason == ConflictReason.ACTIVE_COURSE_YEAR_EXISTS

    @pytest.mark.asyncio
    async def test_open_rejects_overlap_with_closed_year(self, engine, school, clock):
        """Test dates touching a closed course-year overlap."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 12, 20))
        clock.set(2025, 2, 1)
        closed = await engine.course_years.close_course_year(first.id)
        assert isinstance(closed, Success)
        assert closed.payload.end_date == date(2025, 2, 1)

        overlapping = await engine.course_years.open_course_year(
            "overlap", date(2025, 2, 1), date(2025, 12, 31)
        )
        after = await engine.course_years.open_course_year(
            "after", date(2025, 2, 2), date(2025, 12, 31)
        )

        assert isinstance(overlapping, Conflict)
        assert overlapping.reason == ConflictReason.COURSE_YEAR_OVERLAP
        assert isinstance(after, Success)

    @pytest.mark.asyncio
    async def test_open_carries_assignments_forward(self, engine, school, clock):
        """Test staffing of the previous year is copied into the new one."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 3, 31))
        classroom = await school.classroom(1, Track.SCIENCES)
        await school.staff(classroom)

        clock.set(2025, 1, 20)
        assert isinstance(await engine.course_years.close_course_year(first.id), Success)
        second = await school.open_year(date(2025, 2, 1), date(2025, 6, 30))

        result = await engine.staffing.list_assignments(classroom.id, second.id)

        assert isinstance(result, Success)
        assert len(result.payload) == 3
        assert {a.course_year_id for a in result.payload} == {second.id}
        assert await engine.staffing.is_staffing_complete(
            classroom.id, Track.SCIENCES, second.id
        )
        # The previous year keeps its own rows
        history = await engine.staffing.list_assignments(classroom.id, first.id)
        assert len(history.payload) == 3

    @pytest.mark.asyncio
    async def test_open_skips_withdrawn_teachers(self, engine, school, clock):
        """Test assignments of withdrawn teachers are not carried forward."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 3, 31))
        classroom = await school.classroom(1, Track.SCIENCES)
        teachers = await school.staff(classroom)
        math_teacher = teachers[Subject.MATHEMATICS]

        clock.set(2025, 1, 20)
        assert isinstance(await engine.course_years.close_course_year(first.id), Success)
        second = await school.open_year(date(2025, 2, 1), date(2025, 6, 30))

        clock.set(2025, 2, 5)
        assert isinstance(
            await engine.staffing.remove_assignment(classroom.id, math_teacher), Success
        )
        assert isinstance(await engine.teachers.withdraw_teacher(math_teacher), Success)
        assert isinstance(await engine.course_years.close_course_year(second.id), Success)

        third = await school.open_year(date(2025, 3, 1), date(2025, 12, 20))

        missing = await engine.staffing.missing_subjects(classroom.id, Track.SCIENCES, third.id)
        assert missing == [Subject.MATHEMATICS]

    @pytest.mark.asyncio
    async def test_open_does_not_revive_removed_assignments(self, engine, school, clock):
        """Test an assignment removed last year is not copied back from an older year."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 3, 31))
        classroom = await school.classroom(1, Track.SCIENCES)
        teachers = await school.staff(classroom)

        clock.set(2025, 1, 20)
        assert isinstance(await engine.course_years.close_course_year(first.id), Success)
        second = await school.open_year(date(2025, 2, 1), date(2025, 6, 30))

        clock.set(2025, 2, 5)
        assert isinstance(
            await engine.staffing.remove_assignment(classroom.id, teachers[Subject.MATHEMATICS]),
            Success,
        )
        assert isinstance(await engine.course_years.close_course_year(second.id), Success)

        third = await school.open_year(date(2025, 3, 1), date(2025, 12, 20))

        result = await engine.staffing.list_assignments(classroom.id, third.id)
        assert {a.subject for a in result.payload} == {
            Subject.INFORMATICS,
            Subject.PHYSICAL_EDUCATION,
        }
        missing = await engine.staffing.missing_subjects(classroom.id, Track.SCIENCES, third.id)
        assert missing == [Subject.MATHEMATICS]
        # The math teacher stays active and assignable by hand
        assert isinstance(
            await engine.staffing.assign_teacher(classroom.id, teachers[Subject.MATHEMATICS]),
            Success,
        )


class TestCourseYearClose:
    """Tests for closing course-years."""

    @pytest.mark.asyncio
    async def test_close_not_found(self, engine):
        """Test closing an unknown course-year."""
        result = await engine.course_years.close_course_year("missing")

        assert isinstance(result, NotFound)
        assert result.entity == "course_year"

    @pytest.mark.asyncio
    async def test_close_before_start(self, engine, school):
        """Test a course-year cannot close before its first day."""
        year = await school.open_year(date(2025, 1, 10), date(2025, 6, 30))

        result = await engine.course_years.close_course_year(year.id)

        assert isinstance(result, Conflict)
        assert result.reason == ConflictReason.COURSE_YEAR_NOT_STARTED

    @pytest.mark.asyncio
    async def test_close_twice(self, engine, school, clock):
        """Test a closed course-year cannot be closed again."""
        year = await school.open_year(date(2025, 1, 10), date(2025, 6, 30))
        clock.set(2025, 3, 1)
        assert isinstance(await engine.course_years.close_course_year(year.id), Success)

        result = await engine.course_years.close_course_year(year.id)

        assert isinstance(result, Conflict)
        assert result.reason == ConflictReason.COURSE_YEAR_CLOSED

    @pytest.mark.asyncio
    async def test_close_stamps_and_locks(self, engine, school, clock, db_session, audit):
        """Test closing stamps the end date and locks the year's evaluations."""
        year = await school.open_year(date(2025, 1, 10), date(2025, 12, 20))
        classroom = await school.classroom(1, Track.SCIENCES)
        teachers = await school.staff(classroom)
        student = await school.student()
        await school.enroll(student.id, classroom.id)

        clock.set(2025, 6, 15)
        await school.grade_all(student.id, teachers)

        clock.set(2025, 6, 20)
        result = await engine.course_years.close_course_year(year.id)

        assert isinstance(result, Success)
        assert result.payload.is_active is False
        assert result.payload.end_date == date(2025, 6, 20)
        assert result.payload.closed_at == clock.now()
        assert audit.operations[-1] == "close_course_year"

        rows = (await db_session.execute(select(Evaluation.editable))).scalars().all()
        assert rows == [False, False, False]

    @pytest.mark.asyncio
    @pytest.mark.scenario
    async def test_close_waits_for_missing_evaluation(self, engine, school, clock):
        """Test closing lists the student missing an evaluation, then succeeds."""
        year = await school.open_year(date(2025, 1, 10), date(2025, 12, 20))
        classroom = await school.classroom(1, Track.SCIENCES)
        teachers = await school.staff(classroom)
        complete = await school.student("Ana", "Alvarez")
        lagging = await school.student("Bruno", "Barrios")
        await school.enroll(complete.id, classroom.id)
        await school.enroll(lagging.id, classroom.id)

        clock.set(2025, 6, 15)
        await school.grade_all(complete.id, teachers)
        await school.grade(lagging.id, teachers[Subject.MATHEMATICS], 3)
        await school.grade(lagging.id, teachers[Subject.PHYSICAL_EDUCATION], 5)

        rejected = await engine.course_years.close_course_year(year.id)

        assert isinstance(rejected, Conflict)
        assert rejected.reason == ConflictReason.INCOMPLETE_EVALUATIONS
        assert [s.student_id for s in rejected.details] == [lagging.id]
        assert rejected.details[0].missing_subjects == [Subject.INFORMATICS]
        current = await engine.course_years.get_current()
        assert current.is_active is True

        await school.grade(lagging.id, teachers[Subject.INFORMATICS], 2)
        closed = await engine.course_years.close_course_year(year.id)

        assert isinstance(closed, Success)
        fetched = await engine.course_years.get_course_year(year.id)
        assert fetched.payload.is_active is False

    @pytest.mark.asyncio
    async def test_close_ignores_withdrawn_students(self, engine, school, clock):
        """Test withdrawn students do not block closing."""
        year = await school.open_year(date(2025, 1, 10), date(2025, 12, 20))
        classroom = await school.classroom(1, Track.SCIENCES)
        await school.staff(classroom)
        student = await school.student()
        await school.enroll(student.id, classroom.id)
        assert isinstance(await engine.students.withdraw_student(student.id), Success)

        clock.set(2025, 2, 1)
        result = await engine.course_years.close_course_year(year.id)

        assert isinstance(result, Success)


class TestCourseYearQueries:
    """Tests for reading course-years."""

    @pytest.mark.asyncio
    async def test_get_current_without_years(self, engine):
        """Test no current course-year before any is opened."""
        assert await engine.course_years.get_current() is None

    @pytest.mark.asyncio
    async def test_get_current_falls_back_to_latest_closed(self, engine, school, clock):
        """Test the most recently started year is current when none is active."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 3, 31))
        clock.set(2025, 1, 20)
        await engine.course_years.close_course_year(first.id)
        second = await school.open_year(date(2025, 2, 1), date(2025, 6, 30))
        clock.set(2025, 2, 10)
        await engine.course_years.close_course_year(second.id)

        current = await engine.course_years.get_current()

        assert current.id == second.id
        assert current.is_active is False

    @pytest.mark.asyncio
    async def test_list_course_years_most_recent_first(self, engine, school, clock):
        """Test listing orders course-years by start date descending."""
        first = await school.open_year(date(2025, 1, 10), date(2025, 3, 31))
        clock.set(2025, 1, 20)
        await engine.course_years.close_course_year(first.id)
        second = await school.open_year(date(2025, 2, 1), date(2025, 6, 30))

        listed = await engine.course_years.list_course_years()

        assert [y.id for y in listed] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_course_year_not_found(self, engine):
        """Test fetching an unknown course-year."""
        result = await engine.course_years.get_course_year("missing")

        assert isinstance(result, NotFound)


class TestSingleActiveCourseYear:
    """Tests for the storage guarantee of one active course-year."""

    @pytest.mark.asyncio
    async def test_storage_rejects_second_active_year(self, db_session):
        """Test the partial unique index rejects a second active row."""
        db_session.add(
            CourseYear(
                name="a",
                start_date=date(2025, 1, 1),
                end_date=date(2025, 6, 30),
                is_active=True,
                closed_at=None,
            )
        )
        await db_session.flush()
        db_session.add(
            CourseYear(
                name="b",
                start_date=date(2025, 7, 1),
                end_date=date(2025, 12, 31),
                is_active=True,
                closed_at=None,
            )
        )

        with pytest.raises(IntegrityError):
            await db_session.flush()

    @pytest.mark.asyncio
    async def test_storage_allows_many_closed_years(self, db_session):
        """Test inactive course-years are not constrained by the index."""
        for start, end in [
            (date(2023, 1, 1), date(2023, 6, 30)),
            (date(2024, 1, 1), date(2024, 6, 30)),
        ]:
            db_session.add(
                CourseYear(
                    name=str(start.year),
                    start_date=start,
                    end_date=end,
                    is_active=False,
                    closed_at=None,
                )
            )

        await db_session.flush()
