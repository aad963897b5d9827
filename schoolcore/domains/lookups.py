# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read helpers shared by the domain services.

Every "current" notion is derived from storage on each call. Nothing
here caches a course-year, a seat count or a staffing state between
calls.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.infrastructure.database.models import (
    Classroom,
    CourseYear,
    Enrollment,
    Student,
    Teacher,
)


async def get_active_course_year(
    db: AsyncSession,
    *,
    for_update: bool = False,
    read: bool = False,
) -> CourseYear | None:
    """Get the active course-year, optionally locking its row.

    Args:
        db: Async database session.
        for_update: Lock the row for the rest of the transaction.
        read: Take a shared lock instead of an exclusive one.

    Returns:
        The active course-year, or None when every year is closed.
    """
    query = select(CourseYear).where(CourseYear.is_active.is_(True))
    if for_update:
        query = query.with_for_update(read=read)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_current_course_year(db: AsyncSession) -> CourseYear | None:
    """Get the active course-year, else the most recently started one.

    The fallback is for reporting; a closed year is never writable.
    """
    active = await get_active_course_year(db)
    if active is not None:
        return active

    query = select(CourseYear).order_by(CourseYear.start_date.desc()).limit(1)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_classroom(
    db: AsyncSession,
    classroom_id: str,
    *,
    for_update: bool = False,
) -> Classroom | None:
    """Get a classroom by id, optionally locking its row."""
    query = select(Classroom).where(Classroom.id == str(classroom_id))
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_student(
    db: AsyncSession,
    student_id: str,
    *,
    for_update: bool = False,
) -> Student | None:
    """Get a student by id, optionally locking its row."""
    query = select(Student).where(Student.id == str(student_id))
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_teacher(db: AsyncSession, teacher_id: str) -> Teacher | None:
    """Get a teacher by id."""
    result = await db.execute(select(Teacher).where(Teacher.id == str(teacher_id)))
    return result.scalar_one_or_none()


async def count_active_seats(
    db: AsyncSession,
    classroom_id: str,
    course_year_id: str,
) -> int:
    """Count enrollments in a classroom and course-year whose student sits there.

    An enrollment only holds a seat while its student is active and the
    student's current classroom is the enrolled one. Withdrawal clears the
    classroom, so a restored student holds no seat until re-enrolled.
    """
    query = (
        select(func.count(Enrollment.id))
        .join(Student, Student.id == Enrollment.student_id)
        .where(
            Enrollment.classroom_id == str(classroom_id),
            Enrollment.course_year_id == str(course_year_id),
            Student.is_active.is_(True),
            Student.classroom_id == Enrollment.classroom_id,
        )
    )
    result = await db.execute(query)
    return result.scalar() or 0


async def get_year_enrollment(
    db: AsyncSession,
    student_id: str,
    course_year_id: str,
) -> Enrollment | None:
    """Get a student's enrollment for a course-year, seated or released."""
    query = select(Enrollment).where(
        Enrollment.student_id == str(student_id),
        Enrollment.course_year_id == str(course_year_id),
    )
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none()


async def get_seated_enrollment(
    db: AsyncSession,
    student: Student,
    course_year_id: str,
) -> Enrollment | None:
    """Get the enrollment a student currently sits in for a course-year.

    Returns None for withdrawn students and for restored students who
    have not been re-enrolled yet.
    """
    if not student.is_active or student.classroom_id is None:
        return None

    enrollment = await get_year_enrollment(db, student.id, course_year_id)
    if enrollment is None or enrollment.classroom_id != student.classroom_id:
        return None
    return enrollment


async def count_seated_students(db: AsyncSession, classroom_id: str) -> int:
    """Count active students whose current classroom is the given one."""
    query = select(func.count(Student.id)).where(
        Student.classroom_id == str(classroom_id),
        Student.is_active.is_(True),
    )
    result = await db.execute(query)
    return result.scalar() or 0


async def national_id_in_use(
    db: AsyncSession,
    national_id: str,
    *,
    exclude_id: str | None = None,
) -> bool:
    """Check whether a national id belongs to any student or teacher."""
    for model in (Student, Teacher):
        query = select(model.id).where(model.national_id == national_id)
        if exclude_id is not None:
            query = query.where(model.id != str(exclude_id))
        result = await db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            return True
    return False


async def full_name_in_use(db: AsyncSession, first_name: str, last_name: str) -> bool:
    """Check whether a full name belongs to any student or teacher."""
    for model in (Student, Teacher):
        query = select(model.id).where(
            model.first_name == first_name,
            model.last_name == last_name,
        )
        result = await db.execute(query.limit(1))
        if result.scalar_one_or_none() is not None:
            return True
    return False
