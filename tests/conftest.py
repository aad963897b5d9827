# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the test suite:
- An in-memory SQLite database built from the ORM metadata
- A fixed clock and a recording audit sink
- A ProgressionEngine bound to the test session
- A School helper that builds staffed classrooms in a few calls
"""

from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from itertools import count

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolcore.core.config import ProgressionSettings
from schoolcore.domains.enrollment import MonthEnrollmentWindow
from schoolcore.domains.results import Success
from schoolcore.engine import ProgressionEngine
from schoolcore.infrastructure.audit import SYSTEM_ACTOR
from schoolcore.infrastructure.database.models import Base
from schoolcore.models.common import Subject, Track, required_subjects, sorted_subjects


# =============================================================================
# Collaborators
# =============================================================================


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, year: int, month: int, day: int, hour: int = 10) -> None:
        self.current = datetime(year, month, day, hour, tzinfo=timezone.utc)


class RecordingAuditSink:
    """Audit sink keeping entries in memory."""

    def __init__(self) -> None:
        self.entries: list[tuple[str, str, str]] = []

    async def record(self, message: str, operation: str, actor: str = SYSTEM_ACTOR) -> None:
        self.entries.append((message, operation, actor))

    @property
    def operations(self) -> list[str]:
        return [operation for _, operation, _ in self.entries]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker configured like the production one."""
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(
    db_sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on the in-memory database."""
    async with db_sessionmaker() as session:
        yield session


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at 5 January 2025, 10:00 UTC."""
    return FixedClock(datetime(2025, 1, 5, 10, tzinfo=timezone.utc))


@pytest.fixture
def audit() -> RecordingAuditSink:
    """Audit sink that records entries in memory."""
    return RecordingAuditSink()


@pytest.fixture
def progression_settings() -> ProgressionSettings:
    """Progression limits pinned to their documented defaults."""
    return ProgressionSettings(
        classroom_capacity=5,
        max_lifetime_enrollments=3,
        passing_grade=3,
        min_grade=0,
        max_grade=5,
        max_course_year_span_years=2,
        reenrollment_months=[7, 8],
    )


@pytest.fixture
def engine(
    db_session: AsyncSession,
    progression_settings: ProgressionSettings,
    clock: FixedClock,
    audit: RecordingAuditSink,
) -> ProgressionEngine:
    """ProgressionEngine bound to the test session."""
    return ProgressionEngine(
        db_session,
        settings=progression_settings,
        clock=clock,
        window=MonthEnrollmentWindow(progression_settings.reenrollment_months),
        audit=audit,
    )


# =============================================================================
# School Builder
# =============================================================================


class School:
    """Builds people, classrooms and course-years through the engine.

    Every helper asserts that the underlying operation succeeded and
    returns the payload.
    """

    def __init__(self, engine: ProgressionEngine) -> None:
        self.engine = engine
        self._ids = count(1)

    def _next(self) -> int:
        return next(self._ids)

    async def open_year(self, start: date, end: date, name: str | None = None):
        result = await self.engine.course_years.open_course_year(
            name or f"{start.year}-{end.year}", start, end
        )
        assert isinstance(result, Success), result
        return result.payload

    async def classroom(self, number: int, track: Track = Track.SCIENCES):
        result = await self.engine.classrooms.create_classroom(number, track)
        assert isinstance(result, Success), result
        return result.payload

    async def teacher(self, subject: Subject):
        n = self._next()
        result = await self.engine.teachers.hire_teacher(
            f"Teacher{n}", "Staff", f"{n:011d}", subject
        )
        assert isinstance(result, Success), result
        return result.payload

    async def student(self, first_name: str | None = None, last_name: str = "Pupil"):
        n = self._next()
        result = await self.engine.students.admit_student(
            first_name or f"Student{n}", last_name, f"{n:011d}"
        )
        assert isinstance(result, Success), result
        return result.payload

    async def assign(self, classroom_id: str, teacher_id: str):
        result = await self.engine.staffing.assign_teacher(classroom_id, teacher_id)
        assert isinstance(result, Success), result
        return result.payload

    async def staff(self, classroom, skip: tuple[Subject, ...] = ()) -> dict[Subject, str]:
        """Hire and assign one teacher per required subject of the classroom's track."""
        teachers = {}
        for subject in sorted_subjects(required_subjects(classroom.track)):
            if subject in skip:
                continue
            teacher = await self.teacher(subject)
            await self.assign(classroom.id, teacher.id)
            teachers[subject] = teacher.id
        return teachers

    async def enroll(self, student_id: str, classroom_id: str, track: Track = Track.SCIENCES):
        result = await self.engine.enrollments.enroll(student_id, classroom_id, track)
        assert isinstance(result, Success), result
        return result.payload

    async def grade(self, student_id: str, teacher_id: str, grade: int):
        result = await self.engine.evaluations.create_evaluation(student_id, teacher_id, grade)
        assert isinstance(result, Success), result
        return result.payload

    async def grade_all(self, student_id: str, teachers: dict[Subject, str], grade: int = 4):
        return [await self.grade(student_id, teacher_id, grade) for teacher_id in teachers.values()]


@pytest.fixture
def school(engine: ProgressionEngine) -> School:
    """School builder bound to the test engine."""
    return School(engine)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "scenario: mark test as an end-to-end progression scenario"
    )
