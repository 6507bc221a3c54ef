"""Tests for calendar date <-> stored timestamp conversion."""

from datetime import date, datetime
from datetime import timezone as dt_timezone

import pytest

from loans.exceptions import InvalidDateFormat
from loans.services.dates import (
    as_calendar_date,
    format_for_display,
    is_overdue,
    parse_calendar_date,
    to_calendar_date,
    to_stored_timestamp,
)

BOGOTA = "America/Bogota"


class TestToStoredTimestamp:
    def test_anchors_at_local_noon(self):
        stored = to_stored_timestamp("2024-03-15", tz=BOGOTA)
        # Bogota is UTC-5 all year
        assert stored == datetime(2024, 3, 15, 17, 0, tzinfo=dt_timezone.utc)

    def test_empty_input_returns_none(self):
        assert to_stored_timestamp("", tz=BOGOTA) is None
        assert to_stored_timestamp(None, tz=BOGOTA) is None

    def test_surrounding_whitespace_is_ignored(self):
        assert to_stored_timestamp(" 2024-03-15 ", tz=BOGOTA) == (
            to_stored_timestamp("2024-03-15", tz=BOGOTA)
        )

    @pytest.mark.parametrize(
        "value",
        ["2024-02-30", "15/03/2024", "2024-3-5", "not a date", "2024-13-01"],
    )
    def test_malformed_input_raises(self, value):
        with pytest.raises(InvalidDateFormat):
            to_stored_timestamp(value, tz=BOGOTA)

    def test_leap_day_is_accepted(self):
        stored = to_stored_timestamp("2024-02-29", tz=BOGOTA)
        assert to_calendar_date(stored, tz=BOGOTA) == "2024-02-29"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "zone",
        [BOGOTA, "UTC", "Asia/Tokyo", "Pacific/Auckland", "Pacific/Honolulu"],
    )
    def test_same_zone_round_trip(self, zone):
        for text in ("2024-01-01", "2024-03-10", "2024-12-31"):
            stored = to_stored_timestamp(text, tz=zone)
            assert to_calendar_date(stored, tz=zone) == text

    @pytest.mark.parametrize(
        "reader_zone",
        ["Europe/Madrid", "America/Los_Angeles", "Pacific/Honolulu", "UTC"],
    )
    def test_reading_in_nearby_zone_keeps_the_day(self, reader_zone):
        stored = to_stored_timestamp("2024-03-15", tz=BOGOTA)
        assert to_calendar_date(stored, tz=reader_zone) == "2024-03-15"

    def test_iso_string_is_accepted(self):
        assert to_calendar_date("2024-03-15T17:00:00Z", tz=BOGOTA) == (
            "2024-03-15"
        )

    def test_naive_timestamp_is_read_as_utc(self):
        naive = datetime(2024, 3, 15, 17, 0)
        assert to_calendar_date(naive, tz=BOGOTA) == "2024-03-15"

    def test_empty_timestamp_renders_empty(self):
        assert to_calendar_date(None) == ""
        assert to_calendar_date("") == ""


class TestFormatForDisplay:
    def test_stored_instant_shows_its_calendar_day(self):
        stored = to_stored_timestamp("2024-03-15", tz=BOGOTA)
        assert format_for_display(stored, tz=BOGOTA) == "15/03/2024"

    def test_no_double_shift_after_round_trip(self):
        text = "2024-03-15"
        stored = to_stored_timestamp(text, tz=BOGOTA)
        shown = to_calendar_date(stored, tz=BOGOTA)
        again = to_stored_timestamp(shown, tz=BOGOTA)
        assert again == stored
        assert format_for_display(again, "yyyy-MM-dd", tz=BOGOTA) == text

    def test_calendar_text_is_formatted_without_shifting(self):
        assert format_for_display("2024-03-15") == "15/03/2024"

    def test_date_object(self):
        assert format_for_display(date(2024, 3, 5), "dd/MM/yy") == "05/03/24"

    def test_time_tokens(self):
        stored = to_stored_timestamp("2024-03-15", tz=BOGOTA)
        assert (
            format_for_display(stored, "yyyy-MM-dd HH:mm", tz=BOGOTA)
            == "2024-03-15 12:00"
        )

    def test_strftime_pattern_passes_through(self):
        assert format_for_display("2024-03-15", "%d.%m.%Y") == "15.03.2024"

    def test_space_separated_iso_text(self):
        assert (
            format_for_display("2024-03-15 17:00:00+00:00", tz=BOGOTA)
            == "15/03/2024"
        )

    def test_empty_value(self):
        assert format_for_display(None) == ""
        assert format_for_display("") == ""


class TestIsOverdue:
    def test_day_before_reference_is_overdue(self):
        assert is_overdue("2024-03-14", "2024-03-15") is True

    def test_same_day_is_not_overdue(self):
        assert is_overdue("2024-03-15", "2024-03-15") is False

    def test_future_day_is_not_overdue(self):
        assert is_overdue("2024-03-16", date(2024, 3, 15)) is False

    def test_empty_date_is_never_overdue(self):
        assert is_overdue("", "2024-03-15") is False
        assert is_overdue(None, "2024-03-15") is False

    def test_reference_defaults_to_today(self):
        assert is_overdue("2000-01-01") is True
        assert is_overdue("2999-01-01", None) is False

    def test_stored_instant_is_compared_by_calendar_day(self):
        stored = to_stored_timestamp("2024-03-14", tz=BOGOTA)
        assert is_overdue(stored, date(2024, 3, 15), tz=BOGOTA) is True
        assert is_overdue(stored, date(2024, 3, 14), tz=BOGOTA) is False


class TestCalendarDateHelpers:
    def test_parse_calendar_date(self):
        assert parse_calendar_date("2024-03-15") == date(2024, 3, 15)
        assert parse_calendar_date("") is None

    def test_parse_rejects_datetime(self):
        with pytest.raises(InvalidDateFormat):
            parse_calendar_date(datetime(2024, 3, 15, 12, 0))

    def test_as_calendar_date_accepts_every_form(self):
        stored = to_stored_timestamp("2024-03-15", tz=BOGOTA)
        assert as_calendar_date(stored, tz=BOGOTA) == date(2024, 3, 15)
        assert as_calendar_date("2024-03-15") == date(2024, 3, 15)
        assert as_calendar_date(date(2024, 3, 15)) == date(2024, 3, 15)
        assert as_calendar_date(None) is None

    def test_invalid_date_error_carries_value(self):
        with pytest.raises(InvalidDateFormat) as exc_info:
            parse_calendar_date("2024-02-30")
        assert exc_info.value.value == "2024-02-30"
        assert exc_info.value.code == "invalid_date"
