# src/homebase/main.py

import logging
import sys
from datetime import date
from typing import List, Optional, Tuple

from .calendar_logic import build_month_view
from .config import load_config
from .data import CARPOOL_TEXT_KEY, Database
from .datekey import add_days, from_date, make_key, weekday
from .export_utils import format_carpool_text, format_month_text, format_upcoming_text
from .statistics import summarize_month
from .transport import week_start


def _parse_month(text: str) -> Tuple[int, int]:
    y, m = text.strip().split('-', 1)
    year, month = int(y), int(m)
    if not 1 <= month <= 12:
        raise ValueError(f"Monat außerhalb 1..12: {month}")
    return year, month - 1


def input_month() -> Tuple[int, int]:
    today = date.today()
    s = input(f"Monat (YYYY-MM) [leer={today.year}-{today.month:02d}]: ").strip()
    if not s:
        return today.year, today.month - 1
    return _parse_month(s)


def run_month_report(db: Database, year: int, month0: int, today: Optional[str] = None) -> str:
    sources = db.load_month(year, month0)
    view = build_month_view(
        year, month0,
        events=sources['events'],
        family_events=sources['family_events'],
        programs=sources['programs'],
        holidays=sources['holidays'],
        bookings=sources['bookings'],
        overrides=sources['overrides'],
        default_matrix=sources['default_matrix'],
        sitters=sources['sitters'],
        today=today,
    )
    stats = summarize_month(view)

    lines = [format_month_text(view, only_busy=True), ""]
    lines.append(f"Schultage: {stats['school_days']}, Ferientage: {stats['holiday_days']}")
    for kind, n in stats['items'].items():
        lines.append(f"  {kind}: {n}")
    for person, duty in sorted(stats['carpool'].items()):
        lines.append(f"  {person}: {duty['am']}x AM, {duty['pm']}x PM")

    # Wochentext für die laufende Woche, sonst die erste Schulwoche des Monats
    anchor = today if today and view.cell(today) and view.cell(today).in_month \
        else make_key(view.year, view.month0, 1)
    if weekday(anchor) == 6:
        anchor = add_days(anchor, 2)
    elif weekday(anchor) == 0:
        anchor = add_days(anchor, 1)
    monday = week_start(anchor)
    week_overrides = db.list_transport_overrides(monday, add_days(monday, 4))
    carpool = format_carpool_text(monday, week_overrides, sources['default_matrix'])
    db.set_setting(CARPOOL_TEXT_KEY, carpool)
    lines += ["", carpool]

    if today:
        lines += ["", format_upcoming_text(db.list_upcoming_events(today),
                                           db.list_upcoming_bookings(today))]
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None):
    argv = sys.argv[1:] if argv is None else argv
    cfg = load_config()
    logging.basicConfig(level=getattr(logging, str(cfg.get('log_level', 'INFO')).upper(), logging.INFO))

    print("🏠 homebase Monatsübersicht")
    try:
        year, month0 = _parse_month(argv[0]) if argv else input_month()
    except ValueError as e:
        print(f"Ungültige Eingabe: {e}")
        return 2

    db = Database(cfg.get('db_path'), sitter_colors=cfg.get('sitter_colors'))
    try:
        print(run_month_report(db, year, month0, today=from_date(date.today())))
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
