# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for schoolcore.

This package contains domain services that encapsulate the progression
rules. Each service validates and writes inside one transaction and
returns a typed result instead of raising for expected outcomes.

Domains:
    course_year: Course-year lifecycle and closing gate.
    staffing: Classroom staffing completeness and assignments.
    completion: Track completion from evaluation history.
    enrollment: Enrollment eligibility and re-enrollment.
    evaluation: Grades, evaluation locking and incomplete students.
    student: Student admission, withdrawal and restoration.
    teacher: Teacher hiring, subject changes and withdrawal.
    classroom: Classroom creation and track changes.
"""
