# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for tracks, request schemas and result helpers."""

from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from schoolcore.domains.results import ValidationError
from schoolcore.models.classroom import ClassroomCreateRequest
from schoolcore.models.common import (
    TRACK_PRECEDENCE,
    Subject,
    Track,
    required_subjects,
    sorted_subjects,
)
from schoolcore.models.course_year import CourseYearCreateRequest
from schoolcore.models.people import StudentResponse, TeacherHireRequest


class TestTracks:
    """Tests for track subject sets."""

    def test_sciences_subjects(self):
        """Test the sciences track requirements."""
        assert required_subjects(Track.SCIENCES) == {
            Subject.MATHEMATICS,
            Subject.INFORMATICS,
            Subject.PHYSICAL_EDUCATION,
        }

    def test_letras_subjects(self):
        """Test the letras track requirements."""
        assert required_subjects(Track.LETRAS) == {
            Subject.LANGUAGE,
            Subject.HISTORY,
            Subject.PHYSICAL_EDUCATION,
        }

    def test_physical_education_is_shared(self):
        """Test one subject is required by both tracks."""
        shared = required_subjects(Track.SCIENCES) & required_subjects(Track.LETRAS)

        assert shared == {Subject.PHYSICAL_EDUCATION}

    def test_sorted_subjects_uses_declaration_order(self):
        """Test subjects sort in a stable order."""
        assert sorted_subjects({Subject.HISTORY, Subject.MATHEMATICS, Subject.LANGUAGE}) == [
            Subject.MATHEMATICS,
            Subject.LANGUAGE,
            Subject.HISTORY,
        ]

    def test_precedence_covers_every_track(self):
        """Test every track has a reporting position."""
        assert set(TRACK_PRECEDENCE) == set(Track)


class TestRequests:
    """Tests for request schemas."""

    def test_classroom_number_bounds(self):
        """Test classroom numbers run from 1 to 10."""
        assert ClassroomCreateRequest(number=10, track=Track.LETRAS).number == 10

        with pytest.raises(PydanticValidationError):
            ClassroomCreateRequest(number=11, track=Track.LETRAS)

    def test_teacher_subject_from_string(self):
        """Test subjects parse from their stored value."""
        request = TeacherHireRequest(
            first_name="Marta",
            last_name="Gomez",
            national_id="12345678901",
            subject="history",
        )

        assert request.subject == Subject.HISTORY

    def test_course_year_request_keeps_dates(self):
        """Test course-year requests carry their dates unchanged."""
        request = CourseYearCreateRequest(
            name="2025",
            start_date=date(2025, 3, 1),
            end_date=date(2025, 12, 15),
        )

        assert request.start_date == date(2025, 3, 1)
        assert request.end_date == date(2025, 12, 15)

    def test_responses_are_frozen(self):
        """Test read models cannot be mutated."""
        student = StudentResponse(
            id="s1",
            first_name="Lucia",
            last_name="Perez",
            national_id="12345678901",
            is_active=True,
        )

        with pytest.raises(PydanticValidationError):
            student.is_active = False  # type: ignore[misc]


class TestValidationError:
    """Tests for the ValidationError result."""

    def test_single(self):
        """Test building an error for one field."""
        error = ValidationError.single("grade", "out of range")

        assert error.field_errors == {"grade": ["out of range"]}
        assert error.ok is False

    def test_from_pydantic_groups_by_field(self):
        """Test pydantic errors are keyed by field name."""
        with pytest.raises(PydanticValidationError) as exc_info:
            TeacherHireRequest(
                first_name="",
                last_name="Gomez",
                national_id="12",
                subject="alchemy",
            )

        error = ValidationError.from_pydantic(exc_info.value)

        assert set(error.field_errors) == {"first_name", "national_id", "subject"}
        assert all(messages for messages in error.field_errors.values())

    def test_from_pydantic_model_level_error(self):
        """Test model-level errors are reported under __root__."""
        with pytest.raises(PydanticValidationError) as exc_info:
            CourseYearCreateRequest(
                name="2025",
                start_date=date(2025, 3, 1),
                end_date=date(2025, 3, 1),
            )

        error = ValidationError.from_pydantic(exc_info.value)

        assert list(error.field_errors) == ["__root__"]
