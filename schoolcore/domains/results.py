# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed outcomes returned by every engine operation.

Expected business conditions never raise. Each operation returns exactly
one of Success, Conflict, NotFound, ValidationError or InternalError, and
callers branch on the `ok` flag or with structural pattern matching:

    match await service.enroll(student_id, classroom_id, Track.SCIENCES):
        case Success(payload=enrollment):
            ...
        case Conflict(reason=ConflictReason.CLASSROOM_FULL):
            ...
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")


class ConflictReason(str, Enum):
    """Stable codes for business-rule violations."""

    # Enrollment
    DUPLICATE_ENROLLMENT = "duplicate_enrollment"
    TRACK_MISMATCH = "track_mismatch"
    CLASSROOM_FULL = "classroom_full"
    INCOMPLETE_STAFFING = "incomplete_staffing"
    STUDENT_INACTIVE = "student_inactive"
    ENROLLMENT_LIMIT_REACHED = "enrollment_limit_reached"
    PRIOR_YEAR_UNRESOLVED = "prior_year_unresolved"
    TRACK_ALREADY_COMPLETED = "track_already_completed"
    ENROLLMENT_WINDOW_CLOSED = "enrollment_window_closed"

    # Course-year
    NO_ACTIVE_COURSE_YEAR = "no_active_course_year"
    ACTIVE_COURSE_YEAR_EXISTS = "active_course_year_exists"
    COURSE_YEAR_OVERLAP = "course_year_overlap"
    COURSE_YEAR_CLOSED = "course_year_closed"
    COURSE_YEAR_NOT_STARTED = "course_year_not_started"
    INCOMPLETE_EVALUATIONS = "incomplete_evaluations"

    # Evaluation
    NOT_ENROLLED = "not_enrolled"
    SUBJECT_NOT_IN_TRACK = "subject_not_in_track"
    TEACHER_NOT_ASSIGNED = "teacher_not_assigned"
    DUPLICATE_EVALUATION = "duplicate_evaluation"
    STALE_EVALUATION = "stale_evaluation"
    EVALUATION_LOCKED = "evaluation_locked"
    HISTORICAL_EVALUATION = "historical_evaluation"

    # Staffing
    SUBJECT_ALREADY_STAFFED = "subject_already_staffed"
    ALREADY_ASSIGNED = "already_assigned"
    TEACHER_INACTIVE = "teacher_inactive"

    # Registries
    NATIONAL_ID_TAKEN = "national_id_taken"
    NAME_TAKEN = "name_taken"
    STUDENT_ALREADY_ACTIVE = "student_already_active"
    TEACHER_ALREADY_ACTIVE = "teacher_already_active"
    TEACHER_HAS_ASSIGNMENTS = "teacher_has_assignments"
    SUBJECT_LOCKED = "subject_locked"
    CLASSROOM_TRACK_LOCKED = "classroom_track_locked"
    CLASSROOM_NUMBER_TAKEN = "classroom_number_taken"

    # Storage constraint without a more specific mapping
    CONSTRAINT_VIOLATION = "constraint_violation"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Operation committed; carries its payload."""

    payload: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Conflict:
    """A named business rule rejected the operation."""

    reason: ConflictReason
    message: str = ""
    details: list[Any] = field(default_factory=list)
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class NotFound:
    """A referenced entity does not exist."""

    entity: str
    message: str = ""
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class ValidationError:
    """Malformed input, keyed by field name."""

    field_errors: dict[str, list[str]]
    ok: ClassVar[bool] = False

    @classmethod
    def single(cls, field_name: str, message: str) -> "ValidationError":
        """Build a validation error for one field."""
        return cls(field_errors={field_name: [message]})

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """Convert a pydantic validation error into field errors.

        Model-level errors (empty location) are reported under "__root__".
        """
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            loc = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(loc, []).append(error["msg"])
        return cls(field_errors=errors)


@dataclass(frozen=True)
class InternalError:
    """Storage or transaction failure. Never exposes internals."""

    message: str = "Internal error"
    ok: ClassVar[bool] = False


Failure = Union[Conflict, NotFound, ValidationError, InternalError]
Result = Union[Success[T], Failure]
