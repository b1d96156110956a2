# src/homebase/models.py
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional, Tuple

from homebase.datekey import DateKey

PROGRAM_STATUSES = ('consider', 'waitlist', 'enrolled')
VISIBLE_PROGRAM_STATUSES = frozenset({'enrolled', 'waitlist'})
EVENT_COLOR_TAGS = ('default', 'red', 'gold')

# Reihenfolge der Einträge innerhalb eines Tages
SOURCE_KINDS = ('holiday', 'event', 'family_event', 'program', 'booking')


def _text(row: Mapping, key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class OneOffEvent:
    """Einmaliger Kalendereintrag."""
    id: Optional[int]
    date: DateKey
    title: str
    color_tag: str = 'default'
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping) -> 'OneOffEvent':
        return cls(row.get('id'), _text(row, 'date') or '', _text(row, 'title') or '',
                   _text(row, 'type') or _text(row, 'color_tag') or 'default',
                   _text(row, 'notes'))


@dataclass(frozen=True)
class FamilyEvent:
    """Familien- oder Klassen-Termin, immer in derselben Farbe."""
    id: Optional[int]
    date: DateKey
    name: str
    who: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping) -> 'FamilyEvent':
        return cls(row.get('id'), _text(row, 'date') or '', _text(row, 'name') or '',
                   _text(row, 'who'), _text(row, 'notes'))


@dataclass(frozen=True)
class ProgramSchedule:
    """Strukturierte Alternative zum Freitext 'Tag/Uhrzeit'."""
    weekdays: FrozenSet[int] = frozenset()    # 0=Sonntag … 6=Samstag
    start_time: Optional[str] = None          # 'HH:MM'
    end_time: Optional[str] = None


@dataclass(frozen=True)
class RecurringProgram:
    """Nachmittagsprogramm, wöchentlich an den Tagen aus day_time."""
    id: Optional[int]
    name: str
    day_time: Optional[str] = None
    status: str = 'consider'
    location: Optional[str] = None
    cost: Optional[str] = None
    schedule: Optional[ProgramSchedule] = None

    @property
    def visible(self) -> bool:
        return self.status in VISIBLE_PROGRAM_STATUSES

    @classmethod
    def from_row(cls, row: Mapping) -> 'RecurringProgram':
        return cls(row.get('id'), _text(row, 'name') or '', _text(row, 'day_time'),
                   _text(row, 'status') or 'consider', _text(row, 'location'),
                   _text(row, 'cost'))


@dataclass(frozen=True)
class Holiday:
    """Schulferien, start_date und end_date inklusive."""
    id: Optional[int]
    name: str
    start_date: DateKey
    end_date: DateKey

    @classmethod
    def from_row(cls, row: Mapping) -> 'Holiday':
        return cls(row.get('id'), _text(row, 'name') or '',
                   _text(row, 'start_date') or '', _text(row, 'end_date') or '')


@dataclass(frozen=True)
class Sitter:
    id: Optional[int]
    name: str
    color: str = 'default'
    contact: Optional[str] = None
    rate_per_hour: Optional[float] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping) -> 'Sitter':
        return cls(row.get('id'), _text(row, 'name') or '', _text(row, 'color') or 'default',
                   _text(row, 'contact'), row.get('rate_per_hour'), _text(row, 'notes'))


@dataclass(frozen=True)
class SitterBooking:
    id: Optional[int]
    date: DateKey
    sitter_id: Optional[int]
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: str = 'confirmed'
    sitter_name: Optional[str] = None   # nur bei Abfragen mit Sitter-Join

    @classmethod
    def from_row(cls, row: Mapping) -> 'SitterBooking':
        return cls(row.get('id'), _text(row, 'date') or '', row.get('sitter_id'),
                   _text(row, 'start_time'), _text(row, 'end_time'),
                   _text(row, 'status') or 'confirmed', _text(row, 'sitter_name'))


@dataclass(frozen=True)
class TransportOverride:
    """Fahrgemeinschaft für genau einen Tag; AM und PM unabhängig voneinander."""
    date: DateKey
    am_person: Optional[str] = None
    pm_person: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping) -> 'TransportOverride':
        return cls(_text(row, 'date') or '', _text(row, 'am_person'), _text(row, 'pm_person'))


@dataclass(frozen=True)
class TransportAssignment:
    am: str = ''
    pm: str = ''


@dataclass(frozen=True)
class CalendarItem:
    """Ein Chip in einer Kalenderzelle."""
    title: str
    source_kind: str
    color_tag: str
    source_id: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class DayBucket:
    date: DateKey
    on_holiday: bool = False
    items: Tuple[CalendarItem, ...] = ()


@dataclass(frozen=True)
class GridCell:
    date: DateKey
    weekday: int
    in_month: bool


@dataclass(frozen=True)
class MonthCell:
    date: DateKey
    weekday: int
    in_month: bool
    is_today: bool = False
    on_holiday: bool = False
    items: Tuple[CalendarItem, ...] = ()
    transport: Optional[TransportAssignment] = None


@dataclass(frozen=True)
class MonthView:
    year: int
    month0: int
    title: str
    cells: Tuple[MonthCell, ...] = field(default_factory=tuple)

    @property
    def weeks(self) -> Tuple[Tuple[MonthCell, ...], ...]:
        return tuple(self.cells[i:i + 7] for i in range(0, len(self.cells), 7))

    def cell(self, key: DateKey) -> Optional[MonthCell]:
        for c in self.cells:
            if c.date == key:
                return c
        return None
