from datetime import date, datetime, time, timedelta

import pytz

from services.time_utils import (
    contains,
    day_of_week,
    horizon_dates,
    is_weekend,
    local_date,
    local_hhmm,
    overlaps,
    parse_time,
)


class TestParseTime:

    def test_full_and_short_strings(self):
        assert parse_time("10:00:00") == time(10, 0)
        assert parse_time("16:30") == time(16, 30)
        assert parse_time(" 09:15:00 ") == time(9, 15)

    def test_time_and_timedelta(self):
        assert parse_time(time(11, 0)) == time(11, 0)
        assert parse_time(timedelta(hours=14, minutes=30)) == time(14, 30)

    def test_malformed_values_return_none(self):
        assert parse_time("25:00:00") is None
        assert parse_time("ten o'clock") is None
        assert parse_time("") is None
        assert parse_time(None) is None
        assert parse_time(timedelta(days=1)) is None


class TestCalendarHelpers:

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(date(2026, 10, 18)) == 0
        assert day_of_week(date(2026, 10, 19)) == 1
        assert day_of_week(date(2026, 10, 24)) == 6

    def test_is_weekend(self):
        assert is_weekend(date(2026, 10, 17))
        assert is_weekend(date(2026, 10, 18))
        assert not is_weekend(date(2026, 10, 19))

    def test_horizon_dates(self):
        days = horizon_dates(date(2026, 12, 30), 4)
        assert days == [date(2026, 12, 30), date(2026, 12, 31), date(2027, 1, 1), date(2027, 1, 2)]
        assert horizon_dates(date(2026, 12, 30), 0) == []

    def test_local_date_is_not_utc_shifted(self):
        tz = pytz.timezone("America/Sao_Paulo")
        # 01:30 UTC is still the previous evening in Sao Paulo
        utc_instant = datetime(2026, 10, 20, 1, 30, tzinfo=pytz.UTC)
        assert local_date(utc_instant, tz) == date(2026, 10, 19)
        assert local_hhmm(utc_instant, tz) == "22:30"

    def test_naive_datetimes_are_taken_as_local(self):
        tz = pytz.timezone("America/Sao_Paulo")
        assert local_hhmm(datetime(2026, 10, 19, 10, 0), tz) == "10:00"


class TestIntervals:

    def test_overlaps(self):
        assert overlaps(time(9), time(11), time(10), time(12))
        assert not overlaps(time(9), time(10), time(10), time(11))

    def test_contains(self):
        assert contains(time(9), time(17), time(10), time(16))
        assert contains(time(10), time(16), time(10), time(16))
        assert not contains(time(11), time(17), time(10), time(16))
