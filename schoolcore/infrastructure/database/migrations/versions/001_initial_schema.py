# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial SchoolCore schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-07-01
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create SchoolCore tables."""
    # =========================================================================
    # COURSE-YEARS AND CLASSROOMS
    # =========================================================================

    op.create_table(
        "course_years",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint("start_date", "end_date", name="uq_course_years_start_end"),
        sa.CheckConstraint("end_date >= start_date", name="ck_course_years_date_order"),
    )
    # Only one course-year may be active at a time
    op.create_index(
        "uq_course_years_single_active",
        "course_years",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )

    op.create_table(
        "classrooms",
        _id_column(),
        sa.Column("number", sa.Integer, nullable=False),
        sa.Column("track", sa.String(32), nullable=False),
        *_timestamp_columns(),
        sa.UniqueConstraint("number", name="uq_classrooms_number"),
        sa.CheckConstraint("number BETWEEN 1 AND 10", name="ck_classrooms_number_range"),
    )

    # =========================================================================
    # PEOPLE
    # =========================================================================

    op.create_table(
        "students",
        _id_column(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("national_id", sa.String(11), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("track", sa.String(32), nullable=True),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey("classrooms.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("withdrawal_date", sa.Date, nullable=True),
        sa.Column("restoration_date", sa.Date, nullable=True),
        *_timestamp_columns(),
        sa.UniqueConstraint("national_id", name="uq_students_national_id"),
        sa.UniqueConstraint("first_name", "last_name", name="uq_students_full_name"),
    )
    op.create_index("ix_students_classroom_id", "students", ["classroom_id"])

    op.create_table(
        "teachers",
        _id_column(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("national_id", sa.String(11), nullable=False),
        sa.Column("subject", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamp_columns(),
        sa.UniqueConstraint("national_id", name="uq_teachers_national_id"),
        sa.UniqueConstraint("first_name", "last_name", name="uq_teachers_full_name"),
    )

    # =========================================================================
    # ASSOCIATIONS SCOPED TO A COURSE-YEAR
    # =========================================================================

    op.create_table(
        "classroom_teachers",
        _id_column(),
        sa.Column(
            "classroom_id",
            sa.String(36),
            sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "teacher_id",
            sa.String(36),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject", sa.String(32), nullable=False),
        sa.Column(
            "course_year_id",
            sa.String(36),
            sa.ForeignKey("course_years.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamp_columns(),
        sa.UniqueConstraint(
            "classroom_id",
            "subject",
            "course_year_id",
            name="uq_classroom_teachers_classroom_subject_year",
        ),
    )
    op.create_index("ix_classroom_teachers_teacher_id", "classroom_teachers", ["teacher_id"])
    op.create_index(
        "ix_classroom_teachers_course_year_id", "classroom_teachers", ["course_year_id"]
    )

    op.create_table(
        "enrollments",
        _id_column(),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("classroom_id", sa.String(36), sa.ForeignKey("classrooms.id"), nullable=False),
        sa.Column("track", sa.String(32), nullable=False),
        sa.Column(
            "course_year_id", sa.String(36), sa.ForeignKey("course_years.id"), nullable=False
        ),
        sa.Column("enrollment_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamp_columns(),
        sa.UniqueConstraint(
            "student_id",
            "track",
            "course_year_id",
            name="uq_enrollments_student_track_year",
        ),
    )
    op.create_index("ix_enrollments_classroom_id", "enrollments", ["classroom_id"])
    op.create_index("ix_enrollments_course_year_id", "enrollments", ["course_year_id"])

    op.create_table(
        "evaluations",
        _id_column(),
        sa.Column(
            "student_id",
            sa.String(36),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("teacher_id", sa.String(36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("subject", sa.String(32), nullable=False),
        sa.Column(
            "course_year_id", sa.String(36), sa.ForeignKey("course_years.id"), nullable=False
        ),
        sa.Column("grade", sa.Integer, nullable=False),
        sa.Column("evaluation_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("editable", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamp_columns(),
        sa.UniqueConstraint(
            "student_id",
            "subject",
            "course_year_id",
            name="uq_evaluations_student_subject_year",
        ),
        sa.CheckConstraint("grade BETWEEN 0 AND 5", name="ck_evaluations_grade_range"),
    )
    op.create_index("ix_evaluations_teacher_id", "evaluations", ["teacher_id"])
    op.create_index("ix_evaluations_course_year_id", "evaluations", ["course_year_id"])

    # =========================================================================
    # AUDIT
    # =========================================================================

    op.create_table(
        "audit_logs",
        _id_column(),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("operation", sa.String(100), nullable=False),
        sa.Column("actor", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_audit_logs_operation", "audit_logs", ["operation"])


def downgrade() -> None:
    """Drop SchoolCore tables."""
    op.drop_table("audit_logs")
    op.drop_table("evaluations")
    op.drop_table("enrollments")
    op.drop_table("classroom_teachers")
    op.drop_table("teachers")
    op.drop_table("students")
    op.drop_table("classrooms")
    op.drop_index("uq_course_years_single_active", table_name="course_years")
    op.drop_table("course_years")
