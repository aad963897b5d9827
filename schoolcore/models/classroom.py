# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom and staffing schemas."""

from pydantic import BaseModel, Field

from schoolcore.models.common import ResponseModel, Subject, Track


class ClassroomCreateRequest(BaseModel):
    """Data needed to create a classroom."""

    number: int = Field(ge=1, le=10)
    track: Track


class ClassroomResponse(ResponseModel):
    """Classroom details with current-year occupancy."""

    id: str
    number: int
    track: Track
    active_students: int = 0
    missing_subjects: list[Subject] = Field(default_factory=list)


class AssignmentResponse(ResponseModel):
    """A teacher assigned to a classroom for one course-year."""

    id: str
    classroom_id: str
    teacher_id: str
    subject: Subject
    course_year_id: str
