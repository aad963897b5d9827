# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course-year request and response schemas."""

from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from schoolcore.models.common import ResponseModel


class CourseYearCreateRequest(BaseModel):
    """Data needed to open a course-year."""

    name: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_date_order(self) -> Self:
        """End date must come strictly after the start date."""
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class CourseYearResponse(ResponseModel):
    """Course-year details."""

    id: str
    name: str
    start_date: date
    end_date: date
    is_active: bool
    closed_at: datetime | None = None
