from typing import List, Mapping, Optional

from homebase.calendar_logic import MONTH_NAMES
from homebase.datekey import DateKey, WEEKDAY_NAMES, to_date, weekday_name
from homebase.models import (
    CalendarItem, MonthCell, MonthView, OneOffEvent, SitterBooking, TransportOverride,
)
from homebase.transport import resolve_week

_EMPTY_SLOT = 'TBD'


def _item_label(item: CalendarItem) -> str:
    if item.start_time and item.end_time:
        return f"{item.title} ({item.start_time}-{item.end_time})"
    if item.start_time:
        return f"{item.title} ({item.start_time})"
    return item.title


def format_day_line(cell: MonthCell) -> str:
    """
    Eine Zeile pro Tag, z.B.
    '2025-03-26 Wed [holiday] | Spring Break | Soccer (16:00)'
    """
    parts = [f"{cell.date} {WEEKDAY_NAMES[cell.weekday]}"]
    if cell.on_holiday:
        parts[0] += " [holiday]"
    if cell.is_today:
        parts[0] += " *"
    labels = [_item_label(i) for i in cell.items]
    if labels:
        parts.append(" | ".join(labels))
    if cell.transport is not None and (cell.transport.am or cell.transport.pm):
        parts.append(f"AM: {cell.transport.am or _EMPTY_SLOT}, PM: {cell.transport.pm or _EMPTY_SLOT}")
    return " | ".join(parts) if len(parts) > 1 else parts[0]


def format_month_text(view: MonthView, only_busy: bool = False) -> str:
    lines: List[str] = [view.title, "=" * len(view.title)]
    for cell in view.cells:
        if not cell.in_month:
            continue
        if only_busy and not cell.items and not cell.on_holiday:
            continue
        lines.append(format_day_line(cell))
    return "\n".join(lines)


def format_carpool_text(monday: DateKey,
                        overrides: Mapping[DateKey, TransportOverride],
                        default_matrix: Optional[Mapping]) -> str:
    """Kopierbarer Wochentext für die Fahrgemeinschaft (Mo–Fr)."""
    first = to_date(monday)
    lines = [f"Carpool week of {MONTH_NAMES[first.month - 1][:3]} {first.day}"]
    for d, assignment in resolve_week(monday, overrides or {}, default_matrix).items():
        dd = to_date(d)
        lines.append(
            f"{weekday_name(d)} {dd.month}/{dd.day}: "
            f"AM {assignment.am or _EMPTY_SLOT}, PM {assignment.pm or _EMPTY_SLOT}"
        )
    return "\n".join(lines)


def format_upcoming_text(events: List[OneOffEvent], bookings: List[SitterBooking]) -> str:
    """Vorschau wie auf der Startseite: kommende Termine und Sitter-Buchungen."""
    lines = ["Upcoming"]
    for ev in events:
        lines.append(f"  {ev.date} {ev.title}")
    if not events:
        lines.append("  No upcoming events")
    lines.append("Sitter bookings")
    for bk in bookings:
        times = f" {bk.start_time}-{bk.end_time}" if bk.start_time and bk.end_time else ""
        lines.append(f"  {bk.date} {bk.sitter_name or _EMPTY_SLOT}{times}")
    if not bookings:
        lines.append("  No bookings scheduled")
    return "\n".join(lines)
