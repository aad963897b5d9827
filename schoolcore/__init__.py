"""schoolcore.

Academic progression engine for a school: course-year lifecycle,
classroom staffing, enrollment eligibility and evaluation consistency.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
