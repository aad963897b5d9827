# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column mixins.

Constraint names follow a fixed naming convention so that storage errors
can be traced back to the table that raised them.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for every SchoolCore table."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def generate_uuid() -> str:
    """Return a new string UUID primary key."""
    return str(uuid4())


def enum_column(enum_class: type[Enum], name: str) -> sa.Enum:
    """Build a non-native enum type storing member values."""
    return sa.Enum(
        enum_class,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class UUIDMixin:
    """String UUID primary key."""

    id: Mapped[str] = mapped_column(
        sa.String(36),
        primary_key=True,
        default=generate_uuid,
    )


class TimestampMixin:
    """Creation and update timestamps maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
        nullable=False,
    )
