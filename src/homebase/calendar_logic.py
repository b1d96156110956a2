# src/homebase/calendar_logic.py
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from dateutil.relativedelta import relativedelta

from homebase.datekey import (
    DateKey, date_range, in_range, make_key, month_bounds, to_date, weekday,
)
from homebase.models import (
    EVENT_COLOR_TAGS, CalendarItem, DayBucket, FamilyEvent, GridCell, Holiday,
    MonthCell, MonthView, OneOffEvent, RecurringProgram, Sitter, SitterBooking,
    TransportOverride,
)
from homebase.recurrence import program_schedule
from homebase.transport import SCHOOL_WEEKDAYS, resolve_transport

GRID_SIZE = 42   # 6 Wochen à 7 Tage

MONTH_NAMES = ('January', 'February', 'March', 'April', 'May', 'June', 'July',
               'August', 'September', 'October', 'November', 'December')


def shift_month(year: int, month0: int, delta: int) -> Tuple[int, int]:
    """Vor-/Folgemonat mit Jahreswechsel."""
    first = to_date(make_key(year, month0, 1)) + relativedelta(months=delta)
    return first.year, first.month - 1


def month_range(year: int, month0: int) -> Tuple[DateKey, DateKey]:
    return month_bounds(year, month0)


def month_title(year: int, month0: int) -> str:
    year, month0 = shift_month(year, month0, 0)
    return f"{MONTH_NAMES[month0]} {year}"


def build_month_grid(year: int, month0: int) -> List[GridCell]:
    """
    Erzeuge die 42 Zellen (6x7) eines Monats, beginnend am Sonntag:
    letzte Tage des Vormonats, alle Tage des Monats, erste Tage des Folgemonats.
    """
    first, last = month_bounds(year, month0)
    leading = weekday(first)

    cells: List[GridCell] = []
    # Tag 0, -1, … des Monats sind die letzten Tage des Vormonats
    for i in range(leading, 0, -1):
        key = make_key(year, month0, 1 - i)
        cells.append(GridCell(key, weekday(key), False))
    for key in date_range(first, last):
        cells.append(GridCell(key, weekday(key), True))
    day = 1
    while len(cells) < GRID_SIZE:
        key = make_key(year, month0 + 1, day)
        cells.append(GridCell(key, weekday(key), False))
        day += 1
    return cells


def _event_color(tag: Optional[str]) -> str:
    return tag if tag in EVENT_COLOR_TAGS else 'default'


def aggregate_events(
    start: DateKey,
    end: DateKey,
    events: Iterable[OneOffEvent] = (),
    family_events: Iterable[FamilyEvent] = (),
    programs: Iterable[RecurringProgram] = (),
    holidays: Iterable[Holiday] = (),
    bookings: Iterable[SitterBooking] = (),
    sitters: Optional[Mapping[int, Sitter]] = None,
) -> Dict[DateKey, DayBucket]:
    """
    Führe alle Quellen für den Zeitraum [start, end] zusammen.

    Jeder Tag des Zeitraums bekommt einen DayBucket, auch ohne Einträge.
    Reihenfolge je Tag: Ferien, Termine, Familientermine, Programme, Sitter.
    Unvollständige Zeilen (z.B. ohne day_time) werden einfach nicht angezeigt.
    """
    sitters = sitters or {}

    by_date: Dict[DateKey, Dict[str, List[CalendarItem]]] = OrderedDict(
        (d, {'event': [], 'family_event': [], 'booking': []}) for d in date_range(start, end)
    )

    for ev in events or ():
        bucket = by_date.get(ev.date)
        if bucket is not None:
            bucket['event'].append(
                CalendarItem(ev.title, 'event', _event_color(ev.color_tag), ev.id))
    for fe in family_events or ():
        bucket = by_date.get(fe.date)
        if bucket is not None:
            bucket['family_event'].append(
                CalendarItem(fe.name, 'family_event', 'gold', fe.id))
    for bk in bookings or ():
        bucket = by_date.get(bk.date)
        if bucket is None:
            continue
        sitter = sitters.get(bk.sitter_id)
        title = sitter.name if sitter is not None and sitter.name else 'Sitter'
        color = sitter.color if sitter is not None and sitter.color else 'default'
        bucket['booking'].append(
            CalendarItem(title, 'booking', color, bk.id, bk.start_time, bk.end_time))

    active = [(p, program_schedule(p)) for p in (programs or ()) if p.visible]
    holiday_list = [h for h in (holidays or ()) if h.start_date and h.end_date]

    result: Dict[DateKey, DayBucket] = OrderedDict()
    for d, bucket in by_date.items():
        wd = weekday(d)
        holiday_items = [CalendarItem(h.name, 'holiday', 'holiday', h.id)
                         for h in holiday_list if in_range(d, h.start_date, h.end_date)]
        program_items = [CalendarItem(p.name, 'program', 'program', p.id,
                                      sched.start_time, sched.end_time)
                         for p, sched in active if wd in sched.weekdays]
        items = (holiday_items + bucket['event'] + bucket['family_event']
                 + program_items + bucket['booking'])
        result[d] = DayBucket(d, bool(holiday_items), tuple(items))
    return result


def build_month_view(
    year: int,
    month0: int,
    events: Iterable[OneOffEvent] = (),
    family_events: Iterable[FamilyEvent] = (),
    programs: Iterable[RecurringProgram] = (),
    holidays: Iterable[Holiday] = (),
    bookings: Iterable[SitterBooking] = (),
    overrides: Optional[Mapping[DateKey, TransportOverride]] = None,
    default_matrix: Optional[Mapping] = None,
    sitters: Optional[Mapping[int, Sitter]] = None,
    today: Optional[DateKey] = None,
) -> MonthView:
    """Komplette Monatsansicht: Raster + Einträge + Fahrgemeinschaft (Mo–Fr)."""
    year, month0 = shift_month(year, month0, 0)
    start, end = month_range(year, month0)
    buckets = aggregate_events(start, end, events, family_events, programs,
                               holidays, bookings, sitters)
    overrides = overrides or {}

    cells = []
    for gc in build_month_grid(year, month0):
        if not gc.in_month:
            cells.append(MonthCell(gc.date, gc.weekday, False))
            continue
        bucket = buckets[gc.date]
        transport = None
        if gc.weekday in SCHOOL_WEEKDAYS:
            transport = resolve_transport(gc.date, overrides.get(gc.date), default_matrix)
        cells.append(MonthCell(
            date=gc.date,
            weekday=gc.weekday,
            in_month=True,
            is_today=(today == gc.date),
            on_holiday=bucket.on_holiday,
            items=bucket.items,
            transport=transport,
        ))
    return MonthView(year, month0, month_title(year, month0), tuple(cells))
