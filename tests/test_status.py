"""
tests/test_status.py — Effective Status & Date Formatting
==========================================================
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from portalcms.constants import EffectiveStatus
from portalcms.engine.status import (
    count_by_status,
    effective_status,
    format_date,
    format_datetime,
    min_expiry_date,
    parse_timestamp,
    status_label,
)
from portalcms.models import Announcement, Banner

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


# ===========================================================================
# effective_status
# ===========================================================================
class TestEffectiveStatus:

    @pytest.mark.parametrize(
        "status, expiry, expected",
        [
            ("hide", "2020-01-01", EffectiveStatus.HIDDEN),
            ("hide", None, EffectiveStatus.HIDDEN),
            ("expired", "2099-01-01", EffectiveStatus.EXPIRED),
            ("active", "2020-01-01", EffectiveStatus.EXPIRED),
            ("active", "2099-01-01", EffectiveStatus.ACTIVE),
            ("active", None, EffectiveStatus.ACTIVE),
            ("active", "", EffectiveStatus.ACTIVE),
            ("active", "not-a-date", EffectiveStatus.ACTIVE),
            ("something-else", "2020-01-01", EffectiveStatus.ACTIVE),
        ],
    )
    def test_derivation(self, status, expiry, expected):
        assert effective_status({"status": status, "expiry": expiry}, NOW) is expected

    def test_works_on_models(self):
        banner = Banner(status="active", expiry="2025-05-31T23:59:59Z")
        assert effective_status(banner, NOW) is EffectiveStatus.EXPIRED

    def test_hide_wins_over_past_expiry(self):
        ann = Announcement(desc="x", status="hide", expiry="2001-01-01")
        assert effective_status(ann, NOW) is EffectiveStatus.HIDDEN

    def test_naive_now_is_treated_as_utc(self):
        naive_now = datetime(2025, 6, 1, 12, 0)
        row = {"status": "active", "expiry": "2025-06-01T11:00:00Z"}
        assert effective_status(row, naive_now) is EffectiveStatus.EXPIRED

    def test_expiry_exactly_now_is_still_active(self):
        row = {"status": "active", "expiry": NOW.isoformat()}
        assert effective_status(row, NOW) is EffectiveStatus.ACTIVE


class TestCountByStatus:

    def test_counts_every_bucket(self):
        rows = [
            {"status": "active", "expiry": "2099-01-01"},
            {"status": "active", "expiry": "2020-01-01"},
            {"status": "expired"},
            {"status": "hide"},
            {"status": "hide"},
        ]
        assert count_by_status(rows, NOW) == {"active": 1, "expired": 2, "hidden": 2}

    def test_empty(self):
        assert count_by_status([], NOW) == {"active": 0, "expired": 0, "hidden": 0}


# ===========================================================================
# Parsing & formatting
# ===========================================================================
class TestParseTimestamp:

    def test_date_only_is_midnight_utc(self):
        assert parse_timestamp("2025-01-05") == datetime(2025, 1, 5, tzinfo=UTC)

    def test_zulu_suffix(self):
        parsed = parse_timestamp("2025-01-05T10:30:00Z")
        assert parsed == datetime(2025, 1, 5, 10, 30, tzinfo=UTC)

    def test_offset_is_kept(self):
        parsed = parse_timestamp("2025-01-05T10:30:00+08:00")
        assert parsed == datetime(2025, 1, 5, 2, 30, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "garbage"])
    def test_invalid(self, value):
        assert parse_timestamp(value) is None


class TestFormatting:

    def test_format_date(self):
        assert format_date("2025-01-05") == "January 5, 2025"

    @pytest.mark.parametrize("value", [None, "", "nope"])
    def test_format_date_placeholder(self, value):
        assert format_date(value) == "-"

    def test_format_datetime_afternoon(self):
        assert format_datetime("2025-01-05T15:07:00") == "January 5, 2025, 3:07 PM"

    def test_format_datetime_midnight(self):
        assert format_datetime("2025-01-05T00:05:00") == "January 5, 2025, 12:05 AM"

    def test_format_datetime_in_zone(self):
        tz = timezone(timedelta(hours=8))
        assert format_datetime("2025-01-05T23:00:00Z", tz) == "January 6, 2025, 7:00 AM"

    def test_status_label(self):
        assert status_label(EffectiveStatus.HIDDEN) == "Hidden"

    def test_min_expiry_date_is_tomorrow(self):
        assert min_expiry_date(date(2025, 12, 31)) == "2026-01-01"
