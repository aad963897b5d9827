# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common enums and shared schema pieces.

Tracks carry their required-subject sets as data. Every rule that needs
"the subjects of a track" goes through required_subjects() so a new
track only has to be registered in TRACK_SUBJECTS.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Track(str, Enum):
    """Academic specialization a student pursues."""

    SCIENCES = "sciences"
    LETRAS = "letras"


class Subject(str, Enum):
    """Subjects taught at the school. Each teacher owns exactly one."""

    MATHEMATICS = "mathematics"
    INFORMATICS = "informatics"
    PHYSICAL_EDUCATION = "physical_education"
    LANGUAGE = "language"
    HISTORY = "history"


TRACK_SUBJECTS: dict[Track, frozenset[Subject]] = {
    Track.SCIENCES: frozenset(
        {Subject.MATHEMATICS, Subject.INFORMATICS, Subject.PHYSICAL_EDUCATION}
    ),
    Track.LETRAS: frozenset(
        {Subject.LANGUAGE, Subject.HISTORY, Subject.PHYSICAL_EDUCATION}
    ),
}

# Order in which completed tracks are reported
TRACK_PRECEDENCE: tuple[Track, ...] = (Track.SCIENCES, Track.LETRAS)


def required_subjects(track: Track) -> frozenset[Subject]:
    """Return the subjects a student must pass to complete a track.

    Args:
        track: Track to look up.

    Returns:
        Frozen set of required subjects.
    """
    return TRACK_SUBJECTS[track]


def sorted_subjects(subjects: set[Subject] | frozenset[Subject]) -> list[Subject]:
    """Return subjects in declaration order for stable output."""
    order = list(Subject)
    return sorted(subjects, key=order.index)


class ResponseModel(BaseModel):
    """Base class for read-only payloads built from ORM rows."""

    model_config = ConfigDict(from_attributes=True, frozen=True)
