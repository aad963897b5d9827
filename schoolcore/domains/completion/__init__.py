# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Track completion domain package."""

from schoolcore.domains.completion.service import TrackCompletionService

__all__ = [
    "TrackCompletionService",
]
