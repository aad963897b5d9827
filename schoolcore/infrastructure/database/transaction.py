# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transaction boundary for validate-then-write engine operations.

Every mutating operation hands its whole validation and write sequence
to run_atomic() as a single coroutine. The coroutine's reads, its locks
and its writes share one transaction:

- Success commits.
- Any other result rolls back, so a rejected call never leaves a row.
- IntegrityError raised at flush or commit is the authoritative answer
  to a race the pre-checks could not see; it rolls back and becomes a
  Conflict mapped from the violated table or constraint.
- Any other SQLAlchemyError rolls back, is logged and becomes an opaque
  InternalError.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolcore.domains.results import (
    Conflict,
    ConflictReason,
    InternalError,
    Result,
)
from schoolcore.utils.logging import get_logger, operation_context

T = TypeVar("T")

logger = get_logger(__name__)

# Checked in order against the lower-cased driver message. PostgreSQL
# reports constraint names, SQLite reports "table.column" lists, so each
# entry matches a fragment common to both.
_CONSTRAINT_REASONS: tuple[tuple[str, ConflictReason], ...] = (
    ("check constraint", ConflictReason.CONSTRAINT_VIOLATION),
    ("foreign key", ConflictReason.CONSTRAINT_VIOLATION),
    ("classroom_teachers", ConflictReason.SUBJECT_ALREADY_STAFFED),
    ("enrollments", ConflictReason.DUPLICATE_ENROLLMENT),
    ("evaluations", ConflictReason.DUPLICATE_EVALUATION),
    ("course_years_start_end", ConflictReason.COURSE_YEAR_OVERLAP),
    ("course_years.start_date", ConflictReason.COURSE_YEAR_OVERLAP),
    ("course_years", ConflictReason.ACTIVE_COURSE_YEAR_EXISTS),
    ("national_id", ConflictReason.NATIONAL_ID_TAKEN),
    ("full_name", ConflictReason.NAME_TAKEN),
    ("first_name", ConflictReason.NAME_TAKEN),
    ("classrooms", ConflictReason.CLASSROOM_NUMBER_TAKEN),
)


def conflict_from_integrity_error(exc: IntegrityError) -> Conflict:
    """Map a storage constraint violation to a Conflict.

    Args:
        exc: IntegrityError raised by the driver.

    Returns:
        Conflict carrying the most specific reason that matches.
    """
    text = str(exc.orig if exc.orig is not None else exc).lower()
    for fragment, reason in _CONSTRAINT_REASONS:
        if fragment in text:
            return Conflict(reason, "Rejected by storage constraint")
    return Conflict(ConflictReason.CONSTRAINT_VIOLATION, "Rejected by storage constraint")


async def run_atomic(
    db: AsyncSession,
    operation: str,
    work: Callable[[], Awaitable[Result[T]]],
) -> Result[T]:
    """Run a validate-then-write coroutine inside one transaction.

    The coroutine must build its payload before returning, since rows are
    expired by the rollback that follows any failure.

    Args:
        db: Session whose transaction wraps the whole operation.
        operation: Operation name bound to log records.
        work: Coroutine factory performing reads, checks and writes.

    Returns:
        The coroutine's result, or the Conflict/InternalError that
        replaced it when storage rejected the transaction.
    """
    with operation_context(operation):
        try:
            result = await work()
            if result.ok:
                await db.commit()
            else:
                await db.rollback()
            return result
        except IntegrityError as e:
            await db.rollback()
            conflict = conflict_from_integrity_error(e)
            logger.info("Storage constraint rejected write", reason=conflict.reason.value)
            return conflict
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Storage failure, transaction rolled back")
            return InternalError(f"Operation {operation} failed")
