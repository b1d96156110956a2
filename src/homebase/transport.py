# src/homebase/transport.py
from typing import Dict, Mapping, Optional

from homebase.datekey import DateKey, add_days, weekday, weekday_name
from homebase.models import TransportAssignment, TransportOverride

SCHOOL_WEEKDAYS = (1, 2, 3, 4, 5)   # Mo–Fr, 0=Sonntag

# Platzhalter für "Slot nicht angegeben" beim Upsert
UNSET = object()


def _clean(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _matrix_slot(default_matrix: Optional[Mapping], day_name: str, slot: str) -> str:
    if not default_matrix:
        return ''
    wanted = day_name[:3].lower()
    for key, slots in default_matrix.items():
        if not isinstance(key, str) or key[:3].lower() != wanted:
            continue
        if not isinstance(slots, Mapping):
            return ''
        for slot_key, person in slots.items():
            if isinstance(slot_key, str) and slot_key.upper() == slot:
                return _clean(person)
        return ''
    return ''


def resolve_transport(date: DateKey,
                      override: Optional[TransportOverride],
                      default_matrix: Optional[Mapping]) -> TransportAssignment:
    """
    AM/PM-Fahrer für einen Tag. Pro Slot gilt: Override (falls nicht leer),
    sonst die Standard-Matrix des Wochentags, sonst leer.
    Wochenenden liefern immer zwei leere Slots.
    """
    if weekday(date) not in SCHOOL_WEEKDAYS:
        return TransportAssignment()

    day_name = weekday_name(date)
    am = _clean(override.am_person) if override is not None else ''
    pm = _clean(override.pm_person) if override is not None else ''
    if not am:
        am = _matrix_slot(default_matrix, day_name, 'AM')
    if not pm:
        pm = _matrix_slot(default_matrix, day_name, 'PM')
    return TransportAssignment(am=am, pm=pm)


def merge_override(existing: Optional[TransportOverride], date: DateKey,
                   am=UNSET, pm=UNSET) -> TransportOverride:
    """
    Upsert-Regel für einen Tag: nicht angegebene Slots behalten ihren Wert,
    ein leerer String löscht den Slot.
    """
    am_person = existing.am_person if existing is not None else None
    pm_person = existing.pm_person if existing is not None else None
    if am is not UNSET:
        am_person = _clean(am) or None
    if pm is not UNSET:
        pm_person = _clean(pm) or None
    return TransportOverride(date=date, am_person=am_person, pm_person=pm_person)


def resolve_week(monday: DateKey,
                 overrides: Mapping[DateKey, TransportOverride],
                 default_matrix: Optional[Mapping]) -> Dict[DateKey, TransportAssignment]:
    week = {}
    for i in range(5):
        d = add_days(monday, i)
        week[d] = resolve_transport(d, overrides.get(d), default_matrix)
    return week


def week_start(date: DateKey) -> DateKey:
    """Montag der Woche, in der `date` liegt (Sonntag zählt zur Vorwoche)."""
    return add_days(date, -((weekday(date) + 6) % 7))
