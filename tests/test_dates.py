"""Tests for local date keys, legacy record parsing and Sunday-based weeks."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from habitblitz.services.dates import (
    completion_day,
    completion_days,
    has_completion_on,
    local_date_key,
    parse_completion_record,
    week_bounds,
    week_start,
)


class TestLocalDateKey:
    def test_naive_datetime_is_already_local(self):
        assert local_date_key(datetime(2024, 3, 9, 23, 59)) == "2024-03-09"

    def test_date_value(self):
        assert local_date_key(date(2024, 1, 1)) == "2024-01-01"

    def test_aware_datetime_uses_local_calendar_day_not_utc(self):
        """Late evening in New York is already the next day in UTC."""
        ny = ZoneInfo("America/New_York")
        instant = datetime(2024, 1, 3, 22, 30, tzinfo=ny)

        assert instant.astimezone(timezone.utc).date() == date(2024, 1, 4)
        assert local_date_key(instant, ny) == "2024-01-03"

    def test_aware_datetime_converted_into_requested_zone(self):
        instant = datetime(2024, 1, 3, 23, 30, tzinfo=timezone.utc)
        assert local_date_key(instant, ZoneInfo("Asia/Tokyo")) == "2024-01-04"


class TestParseCompletionRecord:
    def test_date_key_string(self):
        assert parse_completion_record("2024-01-10") == datetime(2024, 1, 10)

    def test_iso_datetime_string(self):
        assert parse_completion_record("2024-01-10T08:15:00") == datetime(2024, 1, 10, 8, 15)

    def test_iso_string_with_z_suffix(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        parsed = parse_completion_record("2024-01-10T20:00:00Z", tokyo)
        assert parsed == datetime(2024, 1, 11, 5, 0)

    def test_legacy_seconds_mapping(self):
        utc = timezone.utc
        seconds = int(datetime(2024, 1, 10, 12, tzinfo=utc).timestamp())
        record = {"seconds": seconds, "nanoseconds": 0}
        assert parse_completion_record(record, utc) == datetime(2024, 1, 10, 12)

    def test_legacy_seconds_object(self):
        utc = timezone.utc
        seconds = int(datetime(2024, 1, 10, 12, tzinfo=utc).timestamp())
        record = SimpleNamespace(seconds=seconds, nanoseconds=500_000_000)
        assert parse_completion_record(record, utc) == datetime(2024, 1, 10, 12, 0, 0, 500000)

    def test_datetime_and_date_values(self):
        assert parse_completion_record(datetime(2024, 1, 10, 7)) == datetime(2024, 1, 10, 7)
        assert parse_completion_record(date(2024, 1, 10)) == datetime(2024, 1, 10)

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "not a date",
            "2024-02-30",
            {"nanoseconds": 5},
            {"seconds": "soon"},
            [2024, 1, 1],
            True,
            timedelta(days=1),
            float("inf"),
        ],
    )
    def test_unparseable_input_returns_none(self, raw):
        assert parse_completion_record(raw) is None

    def test_completion_day_returns_calendar_day(self):
        assert completion_day("2024-01-10") == date(2024, 1, 10)
        assert completion_day("garbage") is None


class TestCompletionDays:
    def test_skips_unparseable_and_deduplicates(self):
        utc = timezone.utc
        seconds = int(datetime(2024, 1, 10, 12, tzinfo=utc).timestamp())
        records = ["2024-01-10", {"seconds": seconds}, "junk", None, "2024-01-11"]

        assert completion_days(records, tz=utc) == {date(2024, 1, 10), date(2024, 1, 11)}

    def test_since_drops_days_before_creation_day(self):
        records = ["2023-12-31", "2024-01-01", "2024-01-02"]
        days = completion_days(records, since=datetime(2024, 1, 1, 18, 0))

        # The creation day itself counts even when created late in the day.
        assert days == {date(2024, 1, 1), date(2024, 1, 2)}

    def test_none_records(self):
        assert completion_days(None) == set()


class TestHasCompletionOn:
    def test_exact_key(self):
        assert has_completion_on(["2024-01-10"], "2024-01-10")

    def test_legacy_record_matches_same_day(self):
        utc = timezone.utc
        seconds = int(datetime(2024, 1, 10, 18, tzinfo=utc).timestamp())
        assert has_completion_on([{"seconds": seconds, "nanoseconds": 0}], "2024-01-10", utc)

    def test_other_days_do_not_match(self):
        assert not has_completion_on(["2024-01-09", "junk"], "2024-01-10")


class TestWeekBounds:
    def test_wednesday_maps_to_sunday_through_saturday(self):
        start, end = week_bounds(datetime(2024, 1, 10, 15, 0))  # Wednesday

        assert start == datetime(2024, 1, 7, 0, 0, 0)
        assert end == datetime(2024, 1, 13, 23, 59, 59)

    def test_sunday_starts_its_own_week(self):
        start, _ = week_bounds(date(2024, 1, 7))
        assert start == datetime(2024, 1, 7)

    def test_saturday_belongs_to_preceding_sunday(self):
        start, end = week_bounds(date(2024, 1, 13))
        assert start == datetime(2024, 1, 7)
        assert end.date() == date(2024, 1, 13)

    def test_week_start_across_year_boundary(self):
        assert week_start(date(2024, 1, 1)) == date(2023, 12, 31)
