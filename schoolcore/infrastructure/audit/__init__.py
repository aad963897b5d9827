# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Audit trail collaborators."""

from schoolcore.infrastructure.audit.sink import (
    SYSTEM_ACTOR,
    AuditSink,
    DatabaseAuditSink,
    LoggingAuditSink,
)

__all__ = [
    "SYSTEM_ACTOR",
    "AuditSink",
    "DatabaseAuditSink",
    "LoggingAuditSink",
]
