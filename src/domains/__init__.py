# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for Campus Ops.

Domains:
    tenancy: School resolution and mandatory school_id scoping.
    branch: Branch management and the legacy-record branch backfill.
    admissions: Lead pipeline, kanban board and server actions.
"""
