# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment schemas."""

from datetime import datetime

from schoolcore.models.common import ResponseModel, Track


class EnrollmentResponse(ResponseModel):
    """A student bound to a classroom and track for one course-year."""

    id: str
    student_id: str
    classroom_id: str
    track: Track
    course_year_id: str
    enrollment_date: datetime
