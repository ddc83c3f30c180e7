# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for Campus Ops.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware, so naive/aware comparisons never mix.

Usage:
    from src.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo
    on the way back from the database); aware ones are converted.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def start_of_day(reference: datetime | None = None) -> datetime:
    """Get midnight UTC of the reference day (default: today)."""
    ref = ensure_utc(reference) or utc_now()
    return ref.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(reference: datetime | None = None) -> datetime:
    """Get midnight UTC of the first day of the reference month."""
    return start_of_day(reference).replace(day=1)


def days_before(days: int, reference: datetime | None = None) -> datetime:
    """Get a datetime N days before the reference (default: now)."""
    ref = ensure_utc(reference) or utc_now()
    return ref - timedelta(days=days)
