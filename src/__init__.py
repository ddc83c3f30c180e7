"""Campus Ops Backend.

Multi-branch school operations: tenant-scoped records, the branch
backfill that moves legacy schools onto branches, and the admissions
lead pipeline.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
