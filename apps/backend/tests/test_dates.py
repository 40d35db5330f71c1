from datetime import date, datetime

from finflow.utils.dates import (
    CalendarDate,
    add_months,
    make_local_date,
    month_window,
    parse_calendar_date,
    same_month,
)


def test_parse_iso_fast_path():
    assert parse_calendar_date("2024-03-10") == CalendarDate(2024, 3, 10)
    assert parse_calendar_date("  2024-03-10 ") == CalendarDate(2024, 3, 10)


def test_parse_fast_path_does_not_check_month_length():
    assert parse_calendar_date("2024-02-31") == CalendarDate(2024, 2, 31)


def test_parse_rejects_out_of_range_components():
    assert parse_calendar_date("1899-12-31") is None
    assert parse_calendar_date("2101-01-01") is None
    assert parse_calendar_date("2024-13-01") is None
    assert parse_calendar_date("2024-00-10") is None
    assert parse_calendar_date("2024-01-32") is None


def test_parse_falls_back_to_general_parser():
    assert parse_calendar_date("March 5, 2024") == CalendarDate(2024, 3, 5)
    assert parse_calendar_date("2024-03-05T23:30:00") == CalendarDate(2024, 3, 5)


def test_parse_invalid_input():
    assert parse_calendar_date("not a date") is None
    assert parse_calendar_date("") is None
    assert parse_calendar_date(None) is None
    assert parse_calendar_date(12345) is None


def test_parse_date_objects():
    assert parse_calendar_date(date(2024, 7, 1)) == CalendarDate(2024, 7, 1)
    assert parse_calendar_date(datetime(2024, 7, 1, 23, 59)) == CalendarDate(2024, 7, 1)


def test_make_local_date_round_trips_components():
    d = make_local_date(2024, 12, 31)
    assert (d.year, d.month, d.day) == (2024, 12, 31)


def test_make_local_date_clamps_to_month_end():
    assert make_local_date(2024, 2, 31) == date(2024, 2, 29)
    assert make_local_date(2023, 2, 31) == date(2023, 2, 28)
    assert make_local_date(2024, 4, 31) == date(2024, 4, 30)


def test_month_window_crosses_year_boundary():
    assert month_window(2024, 12) == (date(2024, 12, 1), date(2025, 1, 1))
    assert month_window(2024, 2) == (date(2024, 2, 1), date(2024, 3, 1))


def test_add_months():
    assert add_months(2024, 12, 1) == (2025, 1)
    assert add_months(2024, 1, -1) == (2023, 12)
    assert add_months(2024, 5, 0) == (2024, 5)


def test_same_month():
    assert same_month(date(2024, 3, 31), 2024, 3)
    assert not same_month(date(2024, 4, 1), 2024, 3)
    assert not same_month(None, 2024, 3)


def test_general_parser_applies_year_bounds():
    assert parse_calendar_date("3000/01/01") is None
    assert parse_calendar_date("1850/06/01") is None
    assert parse_calendar_date("2024/06/01") == CalendarDate(2024, 6, 1)
