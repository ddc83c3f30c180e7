# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions live in versions/ and are applied by runner.run_migrations().
002_add_branch_scoping introduces nullable branch columns; run the
branch backfill afterwards to populate them.
"""
