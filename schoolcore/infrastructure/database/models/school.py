# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School models: people, classrooms, course-years and their associations.

Rows reference each other by id only. Services resolve ids per call
instead of navigating relationships, so no model declares one.

Storage-level guarantees:
- one assignment per (classroom, subject, course-year)
- one enrollment per (student, track, course-year)
- one evaluation per (student, subject, course-year)
- at most one course-year with is_active = true (partial unique index)
"""

from datetime import date, datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from schoolcore.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    enum_column,
)
from schoolcore.models.common import Subject, Track

TRACK_TYPE = enum_column(Track, "track")
SUBJECT_TYPE = enum_column(Subject, "subject")


class CourseYear(UUIDMixin, TimestampMixin, Base):
    """A dated school-year period."""

    __tablename__ = "course_years"

    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    closed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        sa.UniqueConstraint("start_date", "end_date", name="uq_course_years_start_end"),
        sa.CheckConstraint("end_date >= start_date", name="date_order"),
        sa.Index(
            "uq_course_years_single_active",
            "is_active",
            unique=True,
            postgresql_where=sa.text("is_active"),
            sqlite_where=sa.text("is_active = 1"),
        ),
    )

    def __repr__(self) -> str:
        return f"CourseYear(id={self.id!r}, name={self.name!r}, active={self.is_active!r})"


class Classroom(UUIDMixin, TimestampMixin, Base):
    """A numbered classroom dedicated to one track."""

    __tablename__ = "classrooms"

    number: Mapped[int] = mapped_column(sa.Integer, nullable=False, unique=True)
    track: Mapped[Track] = mapped_column(TRACK_TYPE, nullable=False)

    __table_args__ = (
        sa.CheckConstraint("number BETWEEN 1 AND 10", name="number_range"),
    )

    def __repr__(self) -> str:
        return f"Classroom(id={self.id!r}, number={self.number!r}, track={self.track!r})"


class Student(UUIDMixin, TimestampMixin, Base):
    """An admitted student."""

    __tablename__ = "students"

    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    national_id: Mapped[str] = mapped_column(sa.String(11), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    track: Mapped[Track | None] = mapped_column(TRACK_TYPE, nullable=True)
    classroom_id: Mapped[str | None] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    withdrawal_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    restoration_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)

    __table_args__ = (
        sa.UniqueConstraint("first_name", "last_name", name="uq_students_full_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"Student(id={self.id!r}, name={self.full_name!r})"


class Teacher(UUIDMixin, TimestampMixin, Base):
    """A teacher owning exactly one subject."""

    __tablename__ = "teachers"

    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    national_id: Mapped[str] = mapped_column(sa.String(11), nullable=False, unique=True)
    subject: Mapped[Subject] = mapped_column(SUBJECT_TYPE, nullable=False)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint("first_name", "last_name", name="uq_teachers_full_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"Teacher(id={self.id!r}, subject={self.subject!r})"


class ClassroomTeacher(UUIDMixin, TimestampMixin, Base):
    """A teacher assigned to a classroom for one course-year."""

    __tablename__ = "classroom_teachers"

    classroom_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("teachers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject: Mapped[Subject] = mapped_column(SUBJECT_TYPE, nullable=False)
    course_year_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("course_years.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "classroom_id",
            "subject",
            "course_year_id",
            name="uq_classroom_teachers_classroom_subject_year",
        ),
    )


class Enrollment(UUIDMixin, TimestampMixin, Base):
    """A student bound to a classroom and track for one course-year."""

    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    classroom_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id"),
        nullable=False,
        index=True,
    )
    track: Mapped[Track] = mapped_column(TRACK_TYPE, nullable=False)
    course_year_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("course_years.id"),
        nullable=False,
        index=True,
    )
    enrollment_date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "student_id",
            "track",
            "course_year_id",
            name="uq_enrollments_student_track_year",
        ),
    )


class Evaluation(UUIDMixin, TimestampMixin, Base):
    """A grade for a student in one subject and course-year."""

    __tablename__ = "evaluations"

    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    teacher_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("teachers.id"),
        nullable=False,
        index=True,
    )
    subject: Mapped[Subject] = mapped_column(SUBJECT_TYPE, nullable=False)
    course_year_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("course_years.id"),
        nullable=False,
        index=True,
    )
    grade: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    evaluation_date: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    editable: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    __table_args__ = (
        sa.UniqueConstraint(
            "student_id",
            "subject",
            "course_year_id",
            name="uq_evaluations_student_subject_year",
        ),
        sa.CheckConstraint("grade BETWEEN 0 AND 5", name="grade_range"),
    )


class AuditLog(UUIDMixin, Base):
    """Audit trail entry for a committed engine operation."""

    __tablename__ = "audit_logs"

    message: Mapped[str] = mapped_column(sa.Text, nullable=False)
    operation: Mapped[str] = mapped_column(sa.String(100), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )
