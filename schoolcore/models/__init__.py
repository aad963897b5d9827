# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas shared by the domain services."""

from schoolcore.models.classroom import (
    AssignmentResponse,
    ClassroomCreateRequest,
    ClassroomResponse,
)
from schoolcore.models.common import (
    TRACK_SUBJECTS,
    Subject,
    Track,
    required_subjects,
)
from schoolcore.models.course_year import CourseYearCreateRequest, CourseYearResponse
from schoolcore.models.enrollment import EnrollmentResponse
from schoolcore.models.evaluation import EvaluationResponse, IncompleteStudent
from schoolcore.models.people import (
    StudentAdmissionRequest,
    StudentResponse,
    TeacherHireRequest,
    TeacherResponse,
)

__all__ = [
    "Track",
    "Subject",
    "TRACK_SUBJECTS",
    "required_subjects",
    "CourseYearCreateRequest",
    "CourseYearResponse",
    "ClassroomCreateRequest",
    "ClassroomResponse",
    "AssignmentResponse",
    "EnrollmentResponse",
    "EvaluationResponse",
    "IncompleteStudent",
    "StudentAdmissionRequest",
    "StudentResponse",
    "TeacherHireRequest",
    "TeacherResponse",
]
