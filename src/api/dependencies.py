# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Example:
    @router.get("/leads")
    async def list_leads(
        slug: str,
        db: AsyncSession = Depends(get_db),
    ):
        ...
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.tenancy import SchoolNotFoundError, TenantScope
from src.infrastructure.database.connection import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request.

    Yields:
        AsyncSession committed when the request succeeds.
    """
    async with get_session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_tenant_scope(slug: str, db: DbSession) -> TenantScope:
    """Resolve the school in the request path.

    Raises:
        HTTPException: 404 if no school has this slug.
    """
    try:
        return await TenantScope.for_slug(db, slug)
    except SchoolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


SchoolScope = Annotated[TenantScope, Depends(get_tenant_scope)]
