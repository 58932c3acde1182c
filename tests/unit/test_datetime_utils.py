# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime helpers."""

from datetime import datetime, timedelta, timezone

from src.utils.datetime import days_from_now, ensure_utc, has_passed, utc_now


class TestEnsureUtc:
    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_assumed_utc(self):
        value = ensure_utc(datetime(2026, 1, 1, 10, 0))

        assert value == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)

    def test_aware_converted(self):
        est = timezone(timedelta(hours=-5))

        value = ensure_utc(datetime(2026, 1, 1, 10, 0, tzinfo=est))

        assert value == datetime(2026, 1, 1, 15, 0, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc


class TestExpiryHelpers:
    """Tests for expiry arithmetic."""

    def test_days_from_start(self):
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)

        assert days_from_now(365, start) == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_days_from_now_is_in_future(self):
        assert days_from_now(1) > utc_now()

    def test_has_passed_boundary_is_inclusive(self):
        now = utc_now()

        assert has_passed(now, now)
        assert has_passed(now - timedelta(seconds=1), now)
        assert not has_passed(now + timedelta(seconds=1), now)

    def test_open_ended_never_passes(self):
        assert not has_passed(None)

    def test_naive_moment_compared_as_utc(self):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

        assert has_passed(datetime(2026, 1, 1, 11, 59), now)

