# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC time helpers used for access windows.

Every stored timestamp is timezone-aware UTC. Expiry follows one rule
across the code base: a moment has passed once it is at or before now,
and a missing moment (``None``) means the window never closes.

Usage:
    from src.utils.datetime import days_from_now, has_passed

    expires_at = days_from_now(365, paid_at)
    if has_passed(enrollment.expires_at):
        ...
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalize a datetime to aware UTC.

    Naive values are taken to already be UTC; that is how SQLite hands
    back TIMESTAMP columns.

    Args:
        dt: Datetime to normalize, or None.

    Returns:
        The same instant in UTC, or None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def days_from_now(days: int, start: datetime | None = None) -> datetime:
    """End of an access window of ``days`` days beginning at start (or now)."""
    base = utc_now() if start is None else ensure_utc(start)
    return base + timedelta(days=days)


def has_passed(moment: datetime | None, now: datetime | None = None) -> bool:
    """Check whether moment <= now; a None moment never passes.

    Args:
        moment: Expiry timestamp or None for an open-ended window.
        now: Reference instant, defaults to utc_now().
    """
    if moment is None:
        return False
    reference = utc_now() if now is None else ensure_utc(now)
    return ensure_utc(moment) <= reference
