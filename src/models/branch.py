# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Branch request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.common import ActionResult


class BranchCreateRequest(BaseModel):
    """Request to create a branch for a school."""

    name: str = Field(min_length=1, max_length=120, description="Branch display name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Branch name must not be blank")
        return value


class BranchResponse(BaseModel):
    """Branch as returned to the UI."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    name: str
    created_at: datetime


class BranchListResult(ActionResult):
    branches: list[BranchResponse] = Field(default_factory=list)


class BranchResult(ActionResult):
    branch: BranchResponse | None = None
