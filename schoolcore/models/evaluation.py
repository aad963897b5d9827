# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Evaluation schemas."""

from datetime import datetime

from pydantic import Field

from schoolcore.models.common import ResponseModel, Subject, Track


class EvaluationResponse(ResponseModel):
    """A graded assessment of a student in one subject."""

    id: str
    student_id: str
    teacher_id: str
    subject: Subject
    course_year_id: str
    grade: int
    evaluation_date: datetime
    editable: bool


class IncompleteStudent(ResponseModel):
    """An actively enrolled student still missing required evaluations."""

    student_id: str
    full_name: str
    track: Track
    missing_subjects: list[Subject] = Field(default_factory=list)
