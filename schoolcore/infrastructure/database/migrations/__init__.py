# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic environment (env.py), revision scripts (versions/) and a
programmatic runner used without the alembic CLI.
"""
