# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student and teacher schemas.

National ids are 11 digits and unique across students and teachers.
"""

from datetime import date

from pydantic import BaseModel, Field, computed_field, field_validator

from schoolcore.models.common import ResponseModel, Subject, Track


class PersonCreateRequest(BaseModel):
    """Shared identity fields for admissions and hires."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    national_id: str = Field(pattern=r"^\d{11}$")

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, value: str) -> str:
        """Strip surrounding whitespace and reject blank names."""
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class StudentAdmissionRequest(PersonCreateRequest):
    """Data needed to admit a student."""


class TeacherHireRequest(PersonCreateRequest):
    """Data needed to hire a teacher."""

    subject: Subject


class StudentResponse(ResponseModel):
    """Student record."""

    id: str
    first_name: str
    last_name: str
    national_id: str
    is_active: bool
    track: Track | None = None
    classroom_id: str | None = None
    withdrawal_date: date | None = None
    restoration_date: date | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class TeacherResponse(ResponseModel):
    """Teacher record."""

    id: str
    first_name: str
    last_name: str
    national_id: str
    subject: Subject
    is_active: bool

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
