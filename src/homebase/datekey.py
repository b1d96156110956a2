# src/homebase/datekey.py
import calendar
import re
from datetime import date, timedelta
from typing import Iterator, Tuple

from dateutil.relativedelta import relativedelta

# Kalendertag als 'YYYY-MM-DD', ohne Uhrzeit und ohne Zeitzone
DateKey = str

WEEKDAY_NAMES = ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat')

_KEY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class ParseError(ValueError):
    """Ein Datumstext ist kein gültiger YYYY-MM-DD Schlüssel."""


def from_date(d: date) -> DateKey:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def to_date(key: DateKey) -> date:
    return date.fromisoformat(key)


def parse_key(text: str) -> DateKey:
    """
    Prüft einen Datumstext streng auf das Format YYYY-MM-DD und einen
    existierenden Kalendertag. Liefert den kanonischen Schlüssel.
    """
    if not isinstance(text, str):
        raise ParseError(f"Kein Datumstext: {text!r}")
    s = text.strip()
    if not _KEY_RE.match(s):
        raise ParseError(f"Ungültiges Datum (erwartet YYYY-MM-DD): {text!r}")
    try:
        return from_date(date.fromisoformat(s))
    except ValueError as e:
        raise ParseError(f"Ungültiges Datum {text!r}: {e}") from e


def make_key(year: int, month0: int, day: int) -> DateKey:
    """
    Baut einen Schlüssel aus (Jahr, 0-basierter Monat, Tag).
    Monat und Tag außerhalb des Bereichs werden normalisiert:
    Tag 0 ist der letzte Tag des Vormonats, Monat 12 der Januar des Folgejahres.
    """
    first = date(year, 1, 1) + relativedelta(months=month0)
    return from_date(first + timedelta(days=day - 1))


def add_days(key: DateKey, n: int) -> DateKey:
    return from_date(to_date(key) + timedelta(days=n))


def weekday(key: DateKey) -> int:
    """0=Sonntag … 6=Samstag."""
    return (to_date(key).weekday() + 1) % 7


def weekday_name(key: DateKey) -> str:
    return WEEKDAY_NAMES[weekday(key)]


def compare(a: DateKey, b: DateKey) -> int:
    # Zero-padded ISO-Format: String-Vergleich == Datumsvergleich
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def in_range(key: DateKey, start: DateKey, end: DateKey) -> bool:
    return compare(start, key) <= 0 and compare(key, end) <= 0


def days_in_month(year: int, month0: int) -> int:
    first = to_date(make_key(year, month0, 1))
    return calendar.monthrange(first.year, first.month)[1]


def month_bounds(year: int, month0: int) -> Tuple[DateKey, DateKey]:
    first = make_key(year, month0, 1)
    last = make_key(year, month0 + 1, 0)
    return first, last


def date_range(start: DateKey, end: DateKey) -> Iterator[DateKey]:
    current = to_date(start)
    last = to_date(end)
    while current <= last:
        yield from_date(current)
        current += timedelta(days=1)
