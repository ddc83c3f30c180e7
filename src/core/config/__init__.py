# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for Campus Ops.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.backfill.main_branch_name)
    'Main Branch'
"""

from src.core.config.settings import (
    APISettings,
    BackfillSettings,
    CORSSettings,
    DatabaseSettings,
    PipelineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "APISettings",
    "BackfillSettings",
    "CORSSettings",
    "DatabaseSettings",
    "PipelineSettings",
]
