# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch service for multi-branch schools.

This module provides the BranchService that handles:
- Listing and creating branches of a school
- Resolving (and lazily provisioning) a school's default branch
- Deleting a branch, guarded against records still pointing at it

Example:
    >>> service = BranchService(db)
    >>> branch, created = await service.resolve_default_branch(school_id)
    >>> await service.delete_branch(school_id, old_branch_id)
"""

import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.branch.scopes import ALL_SCOPES
from src.infrastructure.database.models.tenant.school import Branch

logger = logging.getLogger(__name__)

MAIN_BRANCH_NAME = "Main Branch"


class BranchServiceError(Exception):
    """Base exception for branch service errors."""

    pass


class BranchNotFoundError(BranchServiceError):
    """Raised when a branch is not found in the school."""

    pass


class BranchExistsError(BranchServiceError):
    """Raised when creating a branch whose name is taken in the school."""

    pass


class BranchInUseError(BranchServiceError):
    """Raised when deleting a branch that records still reference.

    Attributes:
        references: Record label -> number of rows pointing at the branch.
    """

    def __init__(self, branch_id: str, references: dict[str, int]) -> None:
        detail = ", ".join(f"{label}={count}" for label, count in references.items())
        super().__init__(f"Branch {branch_id} is still referenced ({detail})")
        self.branch_id = branch_id
        self.references = references


def choose_target_branch(
    branches: Sequence[Branch],
    main_branch_name: str = MAIN_BRANCH_NAME,
) -> Branch | None:
    """Pick the branch legacy records should be assigned to.

    A branch named exactly main_branch_name wins. Otherwise the first
    branch in the given order is used; callers pass branches ordered by
    creation time so the choice is stable. None means the school has
    no branch yet.
    """
    for branch in branches:
        if branch.name == main_branch_name:
            return branch
    return branches[0] if branches else None


class BranchService:
    """Service for managing the branches of a school.

    Attributes:
        _db: Async database session.
        _main_branch_name: Name of the default branch.
    """

    def __init__(self, db: AsyncSession, main_branch_name: str = MAIN_BRANCH_NAME) -> None:
        self._db = db
        self._main_branch_name = main_branch_name

    async def list_branches(self, school_id: str) -> list[Branch]:
        """List a school's branches ordered by name."""
        stmt = select(Branch).where(Branch.school_id == school_id).order_by(Branch.name.asc())
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def create_branch(self, school_id: str, name: str) -> Branch:
        """Create a named branch.

        Raises:
            BranchExistsError: If the school already has a branch with this name.
        """
        existing = await self._db.execute(
            select(Branch.id).where(Branch.school_id == school_id, Branch.name == name)
        )
        if existing.scalar_one_or_none() is not None:
            raise BranchExistsError(f"Branch '{name}' already exists")

        branch = Branch(school_id=school_id, name=name)
        self._db.add(branch)
        try:
            await self._db.commit()
        except IntegrityError as e:
            # A concurrent create won the uq_branches_school_name race
            await self._db.rollback()
            raise BranchExistsError(f"Branch '{name}' already exists") from e
        await self._db.refresh(branch)

        logger.info("Branch created: %s (%s) school=%s", branch.id, name, school_id)
        return branch

    async def resolve_default_branch(self, school_id: str) -> tuple[Branch, bool]:
        """Resolve the school's default branch, creating it if needed.

        Resolution: the branch named "Main Branch"; else, when the school
        has no branch at all, a new "Main Branch"; else the oldest branch.

        Returns:
            Tuple of (branch, created).
        """
        stmt = (
            select(Branch)
            .where(Branch.school_id == school_id)
            .order_by(Branch.created_at.asc(), Branch.id.asc())
        )
        result = await self._db.execute(stmt)
        branch = choose_target_branch(result.scalars().all(), self._main_branch_name)

        if branch is not None:
            if branch.name == self._main_branch_name:
                logger.info("'%s' already exists: %s", self._main_branch_name, branch.id)
            else:
                logger.info("Using existing branch: %s (%s)", branch.name, branch.id)
            return branch, False

        branch = Branch(school_id=school_id, name=self._main_branch_name)
        self._db.add(branch)
        await self._db.commit()

        logger.info("Created branch '%s': %s", self._main_branch_name, branch.id)
        return branch, True

    async def ensure_default_branch(self, school_id: str) -> Branch:
        """Return the school's default branch, provisioning one if it has none."""
        branch, _ = await self.resolve_default_branch(school_id)
        return branch

    async def count_references(self, branch_id: str) -> dict[str, int]:
        """Count rows of every branch-aware record type pointing at a branch.

        Only non-zero counts are returned.
        """
        references: dict[str, int] = {}
        for scope in ALL_SCOPES:
            stmt = select(func.count()).select_from(scope.model).where(scope.target == branch_id)
            count = (await self._db.execute(stmt)).scalar() or 0
            if count:
                references[scope.label] = count
        return references

    async def delete_branch(self, school_id: str, branch_id: str) -> None:
        """Delete a branch that no record references any more.

        Raises:
            BranchNotFoundError: If the branch is not in this school.
            BranchInUseError: If any record still points at the branch.
        """
        result = await self._db.execute(
            select(Branch).where(Branch.id == branch_id, Branch.school_id == school_id)
        )
        branch = result.scalar_one_or_none()
        if branch is None:
            raise BranchNotFoundError(f"Branch {branch_id} not found")

        references = await self.count_references(branch_id)
        if references:
            raise BranchInUseError(branch_id, references)

        await self._db.delete(branch)
        await self._db.commit()

        logger.info("Branch deleted: %s school=%s", branch_id, school_id)
