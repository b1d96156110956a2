# src/homebase/recurrence.py
import re
from typing import Optional, Set, Tuple

from homebase.models import ProgramSchedule, RecurringProgram

# Index == Wochentag (0=Sonntag)
WEEKDAY_ABBREVIATIONS = ('sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat')

_TIME = r'(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)?'
_RANGE_RE = re.compile(_TIME + r'\s*(?:-|–|to)\s*' + _TIME, re.IGNORECASE)
_SINGLE_RE = re.compile(r'(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)|(\d{1,2}):(\d{2})', re.IGNORECASE)


def matched_weekdays(text: Optional[str]) -> Set[int]:
    """
    Alle Wochentage, deren englische Drei-Buchstaben-Abkürzung irgendwo im Text
    vorkommt (Groß-/Kleinschreibung egal). Ohne Treffer: leere Menge.
    """
    if not text or not isinstance(text, str):
        return set()
    s = text.lower()
    return {i for i, abbr in enumerate(WEEKDAY_ABBREVIATIONS) if abbr in s}


def is_active_on(text: Optional[str], weekday: int) -> bool:
    return weekday in matched_weekdays(text)


def _to_24h(hour: int, minute: int, meridiem: Optional[str]) -> Optional[Tuple[int, int]]:
    if minute > 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        pm = meridiem.lower().startswith('p')
        hour = hour % 12 + (12 if pm else 0)
    elif hour > 23:
        return None
    return hour, minute


def _fmt(hm: Optional[Tuple[int, int]]) -> Optional[str]:
    if hm is None:
        return None
    return f"{hm[0]:02d}:{hm[1]:02d}"


def parse_time_range(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Sucht eine Uhrzeit oder Zeitspanne im Freitext, z.B. '3-5pm',
    '3:00-5:00pm', '4pm', '15:30-17:00'. Ergebnis als ('HH:MM', 'HH:MM'),
    fehlende Teile als None.
    """
    if not text or not isinstance(text, str):
        return None, None

    m = _RANGE_RE.search(text)
    if m:
        h1, mi1, mer1, h2, mi2, mer2 = m.groups()
        end = _to_24h(int(h2), int(mi2 or 0), mer2)
        # '3-5pm': das am/pm am Ende gilt auch für den Anfang
        start = _to_24h(int(h1), int(mi1 or 0), mer1 or mer2)
        if start and end and not mer1 and mer2 and start > end:
            start = _to_24h(int(h1), int(mi1 or 0), 'am')
        if start or end:
            return _fmt(start), _fmt(end)

    m = _SINGLE_RE.search(text)
    if m:
        if m.group(1) is not None:
            hm = _to_24h(int(m.group(1)), int(m.group(2) or 0), m.group(3))
        else:
            hm = _to_24h(int(m.group(4)), int(m.group(5)), None)
        return _fmt(hm), None

    return None, None


def schedule_from_text(text: Optional[str]) -> ProgramSchedule:
    start, end = parse_time_range(text)
    return ProgramSchedule(frozenset(matched_weekdays(text)), start, end)


def program_schedule(program: RecurringProgram) -> ProgramSchedule:
    """Strukturierter Stundenplan, falls vorhanden, sonst aus dem Freitext."""
    schedule = getattr(program, 'schedule', None)
    if schedule is not None:
        return schedule
    return schedule_from_text(getattr(program, 'day_time', None))


def program_weekdays(program: RecurringProgram) -> Set[int]:
    schedule = getattr(program, 'schedule', None)
    if schedule is not None:
        return set(schedule.weekdays)
    return matched_weekdays(getattr(program, 'day_time', None))
