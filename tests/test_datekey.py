import time

import pytest

from homebase.datekey import (
    ParseError, add_days, compare, date_range, days_in_month, in_range,
    make_key, month_bounds, parse_key, weekday, weekday_name,
)


@pytest.mark.parametrize("args,expected", [
    ((2025, 2, 1), "2025-03-01"),
    ((2025, 2, 0), "2025-02-28"),    # Tag 0 = letzter Tag des Vormonats
    ((2024, 2, 0), "2024-02-29"),
    ((2024, 12, 1), "2025-01-01"),   # Monat 12 = Januar Folgejahr
    ((2025, -1, 1), "2024-12-01"),
    ((2025, 0, 32), "2025-02-01"),
    ((2025, 0, -1), "2024-12-30"),
])
def test_make_key_normalizes(args, expected):
    assert make_key(*args) == expected


def test_add_days_crosses_month_and_year():
    assert add_days("2024-12-31", 1) == "2025-01-01"
    assert add_days("2024-03-01", -1) == "2024-02-29"
    assert add_days("2025-03-26", 0) == "2025-03-26"
    assert add_days("2025-01-01", 365) == "2026-01-01"


def test_weekday_is_sunday_based():
    assert weekday("2025-03-02") == 0   # Sonntag
    assert weekday("2025-03-03") == 1   # Montag
    assert weekday("2024-12-25") == 3   # Mittwoch
    assert weekday("2025-03-01") == 6   # Samstag
    assert weekday_name("2025-03-26") == "Wed"


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="tzset nicht verfügbar")
def test_weekday_independent_of_timezone(monkeypatch):
    for tz in ("Pacific/Kiritimati", "Pacific/Pago_Pago", "UTC"):
        monkeypatch.setenv("TZ", tz)
        time.tzset()
        assert weekday("2025-03-02") == 0
    monkeypatch.delenv("TZ", raising=False)
    time.tzset()


def test_compare_and_in_range():
    assert compare("2025-01-01", "2025-01-02") == -1
    assert compare("2025-01-02", "2025-01-01") == 1
    assert compare("2025-01-01", "2025-01-01") == 0
    assert in_range("2024-12-23", "2024-12-23", "2024-12-31")
    assert in_range("2024-12-31", "2024-12-23", "2024-12-31")
    assert not in_range("2025-01-01", "2024-12-23", "2024-12-31")
    assert not in_range("2024-12-22", "2024-12-23", "2024-12-31")


def test_parse_key_accepts_canonical_form():
    assert parse_key("2025-03-05") == "2025-03-05"
    assert parse_key(" 2025-03-05\n") == "2025-03-05"


@pytest.mark.parametrize("bad", ["", "2025-3-5", "03/05/2025", "2025-02-30",
                                 "2025-13-01", "2025-03-05T12:00:00", None, 20250305])
def test_parse_key_rejects_malformed(bad):
    with pytest.raises(ParseError):
        parse_key(bad)


def test_parse_error_is_value_error():
    assert issubclass(ParseError, ValueError)


def test_days_in_month_and_bounds():
    assert days_in_month(2024, 1) == 29
    assert days_in_month(2023, 1) == 28
    assert days_in_month(2025, 11) == 31
    assert month_bounds(2025, 1) == ("2025-02-01", "2025-02-28")
    assert month_bounds(2024, 11) == ("2024-12-01", "2024-12-31")


def test_date_range_is_inclusive():
    assert list(date_range("2024-12-30", "2025-01-02")) == [
        "2024-12-30", "2024-12-31", "2025-01-01", "2025-01-02"]
    assert list(date_range("2025-01-02", "2025-01-01")) == []
