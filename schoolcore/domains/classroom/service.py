# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom service for managing classrooms.

This module provides the ClassroomService class for:
- Creating classrooms
- Changing a classroom's track while it is empty
- Classroom lookup with current-year occupancy and staffing gaps
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
from schoolcore.domains.staffing import StaffingService
from schoolcore.infrastructure.audit import SYSTEM_ACTOR, AuditSink, LoggingAuditSink
from schoolcore.infrastructure.database.models import Classroom, ClassroomTeacher, Teacher
from schoolcore.infrastructure.database.transaction import run_atomic
from schoolcore.models.classroom import ClassroomCreateRequest, ClassroomResponse
from schoolcore.models.common import Subject, Track, required_subjects, sorted_subjects

logger = logging.getLogger(__name__)


class ClassroomService:
    """Service for the classroom registry.

    Attributes:
        db: Async database session.
        audit: Sink receiving an entry for each committed change.
        staffing: Read-only staffing oracle for the missing-subject view.
    """

    def __init__(self, db: AsyncSession, audit: AuditSink | None = None) -> None:
        """Initialize classroom service.

        Args:
            db: Async database session.
            audit: Audit sink. Defaults to logging.
        """
        self.db = db
        self.audit = audit or LoggingAuditSink()
        self.staffing = StaffingService(db, audit=self.audit)

    async def create_classroom(
        self,
        number: int,
        track: Track,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[ClassroomResponse]:
        """Create a new classroom.

        Args:
            number: Classroom number, 1 to 10 and unique.
            track: Track taught in the classroom.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the classroom, ValidationError or Conflict.
        """
        try:
            request = ClassroomCreateRequest(number=number, track=track)
        except PydanticValidationError as e:
            return ValidationError.from_pydantic(e)

        async def work() -> Result[ClassroomResponse]:
            existing = await self.db.execute(
                select(Classroom.id).where(Classroom.number == request.number)
            )
            if existing.scalar_one_or_none() is not None:
                return Conflict(
                    ConflictReason.CLASSROOM_NUMBER_TAKEN,
                    f"Classroom {request.number} already exists",
                )

            classroom = Classroom(number=request.number, track=request.track)
            self.db.add(classroom)
            await self.db.flush()

            return Success(
                self._to_response(
                    classroom,
                    active_students=0,
                    missing=sorted_subjects(required_subjects(classroom.track)),
                )
            )

        result = await run_atomic(self.db, "create_classroom", work)

        if isinstance(result, Success):
            logger.info("Created classroom: %d (%s)", request.number, request.track.value)
            await self.audit.record(
                f"Classroom {request.number} created for {request.track.value}",
                "create_classroom",
                actor,
            )

        return result

    async def change_track(
        self,
        classroom_id: str,
        track: Track,
        actor: str = SYSTEM_ACTOR,
    ) -> Result[ClassroomResponse]:
        """Change the track taught in a classroom.

        Only active students and active teachers lock the track. Withdrawn
        people left on the classroom's history do not.

        Args:
            classroom_id: Classroom identifier.
            track: New track.
            actor: Name recorded in the audit trail.

        Returns:
            Success with the classroom, NotFound or Conflict.
        """

        async def work() -> Result[ClassroomResponse]:
            classroom = await lookups.get_classroom(self.db, classroom_id, for_update=True)
            if classroom is None:
                return NotFound("classroom", "Classroom not found")

            if classroom.track == track:
                return Success(await self._build_response(classroom))

            if await lookups.count_seated_students(self.db, classroom.id) > 0:
                return Conflict(
                    ConflictReason.CLASSROOM_TRACK_LOCKED,
                    "Classroom has active students",
                )

            if await self._has_active_teachers(classroom.id):
                return Conflict(
                    ConflictReason.CLASSROOM_TRACK_LOCKED,
                    "Classroom has active teachers assigned",
                )

            classroom.track = track
            await self.db.flush()

            return Success(await self._build_response(classroom))

        result = await run_atomic(self.db, "change_classroom_track", work)

        if isinstance(result, Success):
            logger.info("Changed classroom track: %s -> %s", classroom_id, track.value)
            await self.audit.record(
                f"Classroom {result.payload.number} now teaches {track.value}",
                "change_classroom_track",
                actor,
            )

        return result

    async def get_classroom(self, classroom_id: str) -> Result[ClassroomResponse]:
        """Get classroom by ID.

        Args:
            classroom_id: Classroom identifier.

        Returns:
            Success with the classroom and its current-year occupancy,
            or NotFound.
        """
        classroom = await lookups.get_classroom(self.db, classroom_id)
        if classroom is None:
            return NotFound("classroom", "Classroom not found")
        return Success(await self._build_response(classroom))

    async def list_classrooms(self) -> list[ClassroomResponse]:
        """List classrooms ordered by number."""
        result = await self.db.execute(select(Classroom).order_by(Classroom.number))
        return [await self._build_response(row) for row in result.scalars().all()]

    async def _has_active_teachers(self, classroom_id: str) -> bool:
        """Check for active teachers assigned in the current course-year."""
        current = await lookups.get_current_course_year(self.db)
        if current is None:
            return False

        query = (
            select(ClassroomTeacher.id)
            .join(Teacher, Teacher.id == ClassroomTeacher.teacher_id)
            .where(
                ClassroomTeacher.classroom_id == classroom_id,
                ClassroomTeacher.course_year_id == current.id,
                Teacher.is_active.is_(True),
            )
        )
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def _build_response(self, classroom: Classroom) -> ClassroomResponse:
        """Build a classroom response with current-year occupancy."""
        current = await lookups.get_current_course_year(self.db)
        if current is None:
            return self._to_response(
                classroom,
                active_students=0,
                missing=sorted_subjects(required_subjects(classroom.track)),
            )

        seats = await lookups.count_active_seats(self.db, classroom.id, current.id)
        missing = await self.staffing.missing_subjects(classroom.id, classroom.track, current.id)
        return self._to_response(classroom, active_students=seats, missing=missing)

    def _to_response(
        self,
        classroom: Classroom,
        active_students: int,
        missing: list[Subject],
    ) -> ClassroomResponse:
        """Convert classroom model to response."""
        return ClassroomResponse(
            id=classroom.id,
            number=classroom.number,
            track=classroom.track,
            active_students=active_students,
            missing_subjects=missing,
        )
