"""Tests for due-date phrase resolution.

All relative cases are anchored to Monday 2026-03-02 10:00.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.summarizer.summarization.due_dates import parse_due_date

MONDAY = datetime(2026, 3, 2, 10, 0)
FRIDAY = datetime(2026, 3, 6, 9, 30)


def _eod(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 17, 0)


class TestAbsoluteDates:
    @pytest.mark.parametrize(
        "phrase",
        ["2026-04-15", "April 15, 2026", "Apr 15 2026", "15 April 2026", "04/15/2026"],
    )
    def test_written_forms(self, phrase):
        assert parse_due_date(phrase, now=MONDAY) == datetime(2026, 4, 15)

    def test_iso_datetime_kept_verbatim(self):
        assert parse_due_date("2026-04-15T09:00:00", now=MONDAY) == datetime(2026, 4, 15, 9, 0)

    def test_naive_date_takes_reference_timezone(self):
        now = MONDAY.replace(tzinfo=timezone.utc)
        assert parse_due_date("2026-04-15", now=now) == datetime(2026, 4, 15, tzinfo=timezone.utc)


class TestWeekdays:
    def test_later_this_week(self):
        assert parse_due_date("Friday", now=MONDAY) == _eod(2026, 3, 6)

    def test_same_weekday_means_next_week(self):
        assert parse_due_date("monday", now=MONDAY) == _eod(2026, 3, 9)

    def test_next_pushes_a_further_week(self):
        assert parse_due_date("next Friday", now=MONDAY) == _eod(2026, 3, 13)

    def test_weekday_inside_sentence(self):
        assert parse_due_date("by Wednesday please", now=MONDAY) == _eod(2026, 3, 4)


class TestRelativePhrases:
    @pytest.mark.parametrize(
        "phrase, expected",
        [
            ("in 3 days", _eod(2026, 3, 5)),
            ("in 1 day", _eod(2026, 3, 3)),
            ("in 2 weeks", _eod(2026, 3, 16)),
            ("tomorrow", _eod(2026, 3, 3)),
            ("end of week", _eod(2026, 3, 6)),
            ("EOW", _eod(2026, 3, 6)),
            ("end of month", _eod(2026, 3, 31)),
            ("eom", _eod(2026, 3, 31)),
        ],
    )
    def test_resolves(self, phrase, expected):
        assert parse_due_date(phrase, now=MONDAY) == expected

    def test_end_of_week_on_friday_is_next_friday(self):
        assert parse_due_date("end of week", now=FRIDAY) == _eod(2026, 3, 13)

    def test_end_of_month_in_february(self):
        assert parse_due_date("eom", now=datetime(2026, 2, 10)) == _eod(2026, 2, 28)

    def test_timezone_preserved(self):
        now = MONDAY.replace(tzinfo=timezone.utc)
        assert parse_due_date("tomorrow", now=now).tzinfo is timezone.utc

    def test_end_of_the_week(self):
        assert parse_due_date("by the end of the week", now=MONDAY) == _eod(2026, 3, 6)

    def test_wall_clock_kept_across_dst_change(self):
        # US clocks spring forward on 2026-03-08.
        now = datetime(2026, 3, 2, 10, 0, tzinfo=ZoneInfo("America/New_York"))

        resolved = parse_due_date("in 2 weeks", now=now)

        assert resolved.replace(tzinfo=None) == _eod(2026, 3, 16)
        assert resolved.utcoffset() == timedelta(hours=-4)
        assert now.utcoffset() == timedelta(hours=-5)


class TestUnresolved:
    @pytest.mark.parametrize(
        "phrase",
        [None, "", "   ", "someday", "ASAP", "Q3", "homeowner sign-off", "geometry review"],
    )
    def test_returns_none(self, phrase):
        assert parse_due_date(phrase, now=MONDAY) is None

    def test_defaults_to_current_time(self):
        resolved = parse_due_date("tomorrow")
        assert resolved is not None
        assert resolved.hour == 17

    def test_defaults_to_current_time_in_zone(self):
        resolved = parse_due_date("tomorrow", tz=ZoneInfo("Asia/Tokyo"))
        assert resolved.utcoffset() == timedelta(hours=9)
        assert resolved.hour == 17
