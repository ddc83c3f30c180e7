# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch domain package.

This package provides:
- BranchService for listing, creating and deleting branches
- BranchBackfill (src.domains.branch.backfill) for assigning legacy
  records to a default branch; run it with python -m
- Scope descriptors for every branch-aware record type
"""

from src.domains.branch.scopes import (
    ALL_SCOPES,
    DIRECT_SCOPES,
    INDIRECT_SCOPES,
    LEAD_SCOPE,
    DirectScope,
    IndirectScope,
)
from src.domains.branch.service import (
    MAIN_BRANCH_NAME,
    BranchExistsError,
    BranchInUseError,
    BranchNotFoundError,
    BranchService,
    BranchServiceError,
    choose_target_branch,
)

__all__ = [
    "BranchService",
    "BranchServiceError",
    "BranchNotFoundError",
    "BranchExistsError",
    "BranchInUseError",
    "MAIN_BRANCH_NAME",
    "choose_target_branch",
    "DirectScope",
    "IndirectScope",
    "DIRECT_SCOPES",
    "INDIRECT_SCOPES",
    "LEAD_SCOPE",
    "ALL_SCOPES",
]
