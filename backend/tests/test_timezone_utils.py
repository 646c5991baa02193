"""
Tests for timezone utility functions
"""
from datetime import date, datetime, timezone

import pytest

from backend.utils.timezone_utils import (
    DEFAULT_DISPLAY_TIMEZONE,
    convert_utc_to_display,
    format_datetime_for_api,
    get_display_timezone,
    local_date_string,
    local_day_bounds,
    parse_date_param,
    parse_datetime_string,
    to_utc_naive,
    utc_now,
)


class TestTimezoneUtils:

    def test_default_display_timezone_outside_app(self):
        assert get_display_timezone() == DEFAULT_DISPLAY_TIMEZONE == "Asia/Jerusalem"

    def test_display_timezone_from_config(self, app):
        app.config['DISPLAY_TIMEZONE'] = 'Europe/London'
        assert get_display_timezone() == 'Europe/London'

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo == timezone.utc

    def test_convert_utc_to_display(self):
        # Israel is UTC+3 in summer
        display_dt = convert_utc_to_display(datetime(2024, 7, 1, 10, 30))
        assert (display_dt.hour, display_dt.minute) == (13, 30)

    def test_to_utc_naive(self):
        assert to_utc_naive(datetime(2024, 1, 15, 10, 0)) == datetime(2024, 1, 15, 8, 0)
        assert to_utc_naive(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)) == datetime(2024, 1, 15, 10, 0)

    def test_day_bounds_winter(self):
        assert local_day_bounds(date(2024, 1, 15)) == (datetime(2024, 1, 14, 22, 0), datetime(2024, 1, 15, 22, 0))

    def test_day_bounds_summer(self):
        assert local_day_bounds(date(2024, 7, 15)) == (datetime(2024, 7, 14, 21, 0), datetime(2024, 7, 15, 21, 0))

    def test_day_bounds_dst_start_is_23_hours(self):
        start, end = local_day_bounds(date(2024, 3, 29))
        assert start == datetime(2024, 3, 28, 22, 0)
        assert end == datetime(2024, 3, 29, 21, 0)

    def test_day_bounds_aware_datetime_uses_local_date(self):
        # 23:00 UTC is 01:00 the next day in Israel (winter)
        start, _ = local_day_bounds(datetime(2024, 1, 15, 23, 0, tzinfo=timezone.utc))
        assert start == datetime(2024, 1, 15, 22, 0)

    def test_day_bounds_naive_datetime_is_local(self):
        assert local_day_bounds(datetime(2024, 1, 15, 23, 30)) == local_day_bounds(date(2024, 1, 15))

    def test_local_date_string(self):
        assert local_date_string(datetime(2024, 1, 15, 23, 0, tzinfo=timezone.utc)) == '2024-01-16'
        assert local_date_string(date(2024, 1, 15)) == '2024-01-15'

    def test_parse_date_param(self):
        assert parse_date_param('2024-01-15') == date(2024, 1, 15)
        assert parse_date_param(None) is None
        assert parse_date_param('') is None
        with pytest.raises(ValueError):
            parse_date_param('15/01/2024')

    def test_parse_datetime_string(self):
        assert parse_datetime_string("2023-05-15T10:30:00Z") == datetime(2023, 5, 15, 10, 30)
        # no offset → local time
        assert parse_datetime_string("2024-01-15 12:00") == datetime(2024, 1, 15, 10, 0)
        assert parse_datetime_string(None) is None
        with pytest.raises(ValueError):
            parse_datetime_string("not a date")

    def test_format_datetime_for_api(self):
        assert format_datetime_for_api(datetime(2024, 1, 15, 9, 0)) == '2024-01-15T09:00:00+00:00'
        assert format_datetime_for_api(None) is None
