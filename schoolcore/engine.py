# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progression engine facade.

ProgressionEngine wires every domain service over a single session so a
caller holds one object per unit of work. open_engine() binds a facade
to a fresh pooled session.

Example:
    async with open_engine() as engine:
        result = await engine.enrollments.enroll(student_id, classroom_id, Track.SCIENCES)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.core.config import ProgressionSettings, get_settings
from schoolcore.domains.classroom import ClassroomService
from schoolcore.domains.completion import TrackCompletionService
from schoolcore.domains.course_year import CourseYearService
from schoolcore.domains.enrollment import EnrollmentService, EnrollmentWindow
from schoolcore.domains.evaluation import EvaluationService
from schoolcore.domains.staffing import StaffingService
from schoolcore.domains.student import StudentService
from schoolcore.domains.teacher import TeacherService
from schoolcore.infrastructure.audit import AuditSink, DatabaseAuditSink, LoggingAuditSink
from schoolcore.infrastructure.database import get_session, get_sessionmaker
from schoolcore.utils.datetime import Clock, SystemClock

logger = logging.getLogger(__name__)


class ProgressionEngine:
    """All progression services bound to one session.

    Attributes:
        db: Async database session shared by every service.
        course_years: Course-year lifecycle.
        staffing: Classroom staffing validator and assignments.
        completion: Track completion tracker.
        enrollments: Enrollment eligibility engine.
        evaluations: Evaluation consistency engine.
        students: Student registry.
        teachers: Teacher registry.
        classrooms: Classroom registry.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressionSettings | None = None,
        clock: Clock | None = None,
        window: EnrollmentWindow | None = None,
        audit: AuditSink | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            db: Async database session.
            settings: Progression limits. Defaults to application settings.
            clock: Time source. Defaults to the system clock.
            window: Re-enrollment window. Defaults to the configured months.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        settings = settings or get_settings().progression
        clock = clock or SystemClock()
        audit = audit or LoggingAuditSink()

        self.course_years = CourseYearService(db, settings=settings, clock=clock, audit=audit)
        self.staffing = StaffingService(db, audit=audit)
        self.completion = TrackCompletionService(db, settings=settings)
        self.enrollments = EnrollmentService(
            db, settings=settings, clock=clock, window=window, audit=audit
        )
        self.evaluations = EvaluationService(db, settings=settings, clock=clock, audit=audit)
        self.students = StudentService(db, clock=clock, audit=audit)
        self.teachers = TeacherService(db, audit=audit)
        self.classrooms = ClassroomService(db, audit=audit)


@asynccontextmanager
async def open_engine(
    settings: ProgressionSettings | None = None,
    clock: Clock | None = None,
    window: EnrollmentWindow | None = None,
    audit: AuditSink | None = None,
) -> AsyncIterator[ProgressionEngine]:
    """Open an engine bound to a fresh session from the shared pool.

    Audit entries go to the audit_logs table unless another sink is given.

    Args:
        settings: Progression limits. Defaults to application settings.
        clock: Time source. Defaults to the system clock.
        window: Re-enrollment window. Defaults to the configured months.
        audit: Audit sink. Defaults to a database sink.

    Yields:
        ProgressionEngine for the duration of the session.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    sink = audit or DatabaseAuditSink(get_sessionmaker())

    async with get_session() as session:
        logger.debug("Opened progression engine session")
        yield ProgressionEngine(
            session,
            settings=settings,
            clock=clock,
            window=window,
            audit=sink,
        )
