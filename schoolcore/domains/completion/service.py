# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Track completion service.

This module provides the TrackCompletionService class for:
- Checking whether a student passed a track within one course-year
- Checking whether a student ever completed a track
- Finding the track a student completed, if any

A student who completed one track may only enroll in the other one.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.core.config import ProgressionSettings, get_settings
from schoolcore.infrastructure.database.models import Enrollment, Evaluation
from schoolcore.models.common import TRACK_PRECEDENCE, Subject, Track, required_subjects

logger = logging.getLogger(__name__)


class TrackCompletionService:
    """Read-only oracle over a student's evaluation history.

    Attributes:
        db: Async database session.
        settings: Progression limits (passing grade).
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: ProgressionSettings | None = None,
    ) -> None:
        """Initialize track completion service.

        Args:
            db: Async database session.
            settings: Progression limits. Defaults to application settings.
        """
        self.db = db
        self.settings = settings or get_settings().progression

    async def has_passed_track_in_course_year(
        self,
        student_id: str,
        track: Track,
        course_year_id: str,
    ) -> bool:
        """Check that a student passed every required subject of a track in one year.

        Only the most recent evaluation per subject counts.

        Args:
            student_id: Student identifier.
            track: Track to check.
            course_year_id: Course-year the evaluations belong to.

        Returns:
            True if every required subject has a latest grade at or above
            the passing grade. False if any subject is unevaluated.
        """
        required = required_subjects(track)

        query = (
            select(Evaluation.subject, Evaluation.grade)
            .where(
                Evaluation.student_id == str(student_id),
                Evaluation.course_year_id == str(course_year_id),
                Evaluation.subject.in_(sorted(required)),
            )
            .order_by(Evaluation.evaluation_date.desc())
        )
        result = await self.db.execute(query)

        latest: dict[Subject, int] = {}
        for subject, grade in result.all():
            latest.setdefault(subject, grade)

        return all(
            subject in latest and latest[subject] >= self.settings.passing_grade
            for subject in required
        )

    async def has_ever_completed_track(self, student_id: str, track: Track) -> bool:
        """Check whether a student passed a track in any year they were enrolled in it.

        Args:
            student_id: Student identifier.
            track: Track to check.

        Returns:
            True if the track was passed in at least one enrolled course-year.
        """
        query = (
            select(Enrollment.course_year_id)
            .where(
                Enrollment.student_id == str(student_id),
                Enrollment.track == track,
            )
            .distinct()
        )
        result = await self.db.execute(query)

        for course_year_id in result.scalars().all():
            if await self.has_passed_track_in_course_year(student_id, track, course_year_id):
                return True
        return False

    async def completed_track(self, student_id: str) -> Track | None:
        """Get the track a student completed.

        Sciences is checked before Letras.

        Args:
            student_id: Student identifier.

        Returns:
            The first completed track, or None.
        """
        for track in TRACK_PRECEDENCE:
            if await self.has_ever_completed_track(student_id, track):
                logger.debug("Student %s completed track %s", student_id, track.value)
                return track
        return None
