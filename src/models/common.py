# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared response schemas for the server-action surface."""

from pydantic import BaseModel, Field


class ActionResult(BaseModel):
    """Outcome of a server action.

    Actions never raise across the boundary: failures come back as
    success=False with a message the UI can show inline.
    """

    success: bool = Field(description="Whether the action succeeded")
    error: str | None = Field(default=None, description="Error message when success is false")

    @classmethod
    def ok(cls, **kwargs) -> "ActionResult":
        return cls(success=True, **kwargs)

    @classmethod
    def fail(cls, error: str, **kwargs) -> "ActionResult":
        return cls(success=False, error=error, **kwargs)
