# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Evaluation domain package.

This package provides grading functionality including:
- Evaluation creation, update and deletion
- Course-year closing readiness (students missing evaluations)
"""

from schoolcore.domains.evaluation.service import EvaluationService

__all__ = [
    "EvaluationService",
]
