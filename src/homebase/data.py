import json
import logging
import os
import sqlite3
from typing import Dict, List, Optional

from homebase.calendar_logic import month_range
from homebase.datekey import DateKey, add_days, parse_key
from homebase.models import (
    PROGRAM_STATUSES, FamilyEvent, Holiday, OneOffEvent, RecurringProgram,
    Sitter, SitterBooking, TransportOverride,
)
from homebase.transport import UNSET, merge_override

DEFAULT_SITTER_COLORS = ['#E57373', '#F06292', '#BA68C8', '#64B5F6',
                         '#4DB6AC', '#81C784', '#FFB74D', '#A1887F']

CARPOOL_MATRIX_KEY = 'carpool_matrix'
CARPOOL_TEXT_KEY = 'carpool_text'

_TABLES = ('calendar_events', 'family_events', 'afterschool_programs', 'holidays',
           'sitter_bookings', 'sitters', 'transport_overrides', 'app_settings')


class Database:
    def __init__(self, db_path: str = None, sitter_colors: Optional[List[str]] = None):
        try:
            self.db_path = db_path or os.path.join(os.path.expanduser("~"), ".homebase", "homebase.db")
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self.sitter_colors = sitter_colors or DEFAULT_SITTER_COLORS
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON;")
            self._ensure_tables()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS calendar_events (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          date TEXT NOT NULL,
          title TEXT NOT NULL,
          type TEXT NOT NULL DEFAULT 'default',
          notes TEXT
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS family_events (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          date TEXT NOT NULL,
          name TEXT NOT NULL,
          who TEXT,
          notes TEXT
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS afterschool_programs (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL,
          day_time TEXT,
          location TEXT,
          cost TEXT,
          status TEXT NOT NULL DEFAULT 'consider'
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS holidays (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL,
          start_date TEXT NOT NULL,
          end_date TEXT NOT NULL
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS sitters (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL,
          color TEXT,
          contact TEXT,
          rate_per_hour REAL,
          notes TEXT
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS sitter_bookings (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          date TEXT NOT NULL,
          sitter_id INTEGER,
          start_time TEXT,
          end_time TEXT,
          status TEXT NOT NULL DEFAULT 'confirmed',
          FOREIGN KEY(sitter_id) REFERENCES sitters(id) ON DELETE SET NULL
        )""")
        # höchstens eine Zeile pro Tag
        cur.execute("""
        CREATE TABLE IF NOT EXISTS transport_overrides (
          date TEXT PRIMARY KEY,
          am_person TEXT,
          pm_person TEXT
        )""")
        cur.execute("""
        CREATE TABLE IF NOT EXISTS app_settings (
          key TEXT PRIMARY KEY,
          value TEXT
        )""")
        self.conn.commit()

    # Export/Import
    def export_to_sql(self, filename: str):
        """Dump aller Tabellen als SQL-Statements"""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self.conn.iterdump():
                f.write(f"{line}\n")

    def import_from_sql(self, filename: str):
        """Vorhandene Tabellen löschen, Dump einlesen und ausführen"""
        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        cur = self.conn.cursor()
        cur.execute("PRAGMA foreign_keys = OFF;")
        for tbl in _TABLES:
            cur.execute(f"DROP TABLE IF EXISTS {tbl}")
        self.conn.commit()
        self.conn.executescript(script)
        self.conn.execute("PRAGMA foreign_keys = ON;")
        self._ensure_tables()

    # Lesevertrag der Kalender-Engine
    def list_events(self, start: DateKey, end: DateKey) -> List[OneOffEvent]:
        cur = self.conn.execute(
            "SELECT * FROM calendar_events WHERE date BETWEEN ? AND ? ORDER BY date, id",
            (start, end))
        return [OneOffEvent.from_row(dict(row)) for row in cur.fetchall()]

    def list_family_events(self, start: DateKey, end: DateKey) -> List[FamilyEvent]:
        cur = self.conn.execute(
            "SELECT * FROM family_events WHERE date BETWEEN ? AND ? ORDER BY date, id",
            (start, end))
        return [FamilyEvent.from_row(dict(row)) for row in cur.fetchall()]

    def list_programs(self) -> List[RecurringProgram]:
        cur = self.conn.execute("SELECT * FROM afterschool_programs ORDER BY name, id")
        return [RecurringProgram.from_row(dict(row)) for row in cur.fetchall()]

    def list_holidays(self) -> List[Holiday]:
        cur = self.conn.execute("SELECT * FROM holidays ORDER BY start_date, id")
        return [Holiday.from_row(dict(row)) for row in cur.fetchall()]

    def list_bookings(self, start: DateKey, end: DateKey) -> List[SitterBooking]:
        cur = self.conn.execute(
            "SELECT * FROM sitter_bookings WHERE date BETWEEN ? AND ? ORDER BY date, start_time, id",
            (start, end))
        return [SitterBooking.from_row(dict(row)) for row in cur.fetchall()]

    # Startseite / Admin: Vorschau ab heute
    def list_upcoming_events(self, today: DateKey, days: int = 60, limit: int = 6) -> List[OneOffEvent]:
        start = parse_key(today)
        cur = self.conn.execute(
            "SELECT * FROM calendar_events WHERE date BETWEEN ? AND ? ORDER BY date, id LIMIT ?",
            (start, add_days(start, days), limit))
        return [OneOffEvent.from_row(dict(row)) for row in cur.fetchall()]

    def list_upcoming_bookings(self, today: DateKey, limit: int = 10) -> List[SitterBooking]:
        """Nächste Buchungen ab heute, mit Sitter-Namen."""
        cur = self.conn.execute(
            """SELECT b.*, s.name AS sitter_name FROM sitter_bookings b
               LEFT JOIN sitters s ON s.id = b.sitter_id
               WHERE b.date >= ? ORDER BY b.date, b.start_time, b.id LIMIT ?""",
            (parse_key(today), limit))
        return [SitterBooking.from_row(dict(row)) for row in cur.fetchall()]

    def list_sitters(self) -> Dict[int, Sitter]:
        cur = self.conn.execute("SELECT * FROM sitters ORDER BY name, id")
        return {row['id']: Sitter.from_row(dict(row)) for row in cur.fetchall()}

    def get_transport_override(self, date: DateKey) -> Optional[TransportOverride]:
        cur = self.conn.execute("SELECT * FROM transport_overrides WHERE date=?", (date,))
        row = cur.fetchone()
        return TransportOverride.from_row(dict(row)) if row else None

    def list_transport_overrides(self, start: DateKey, end: DateKey) -> Dict[DateKey, TransportOverride]:
        cur = self.conn.execute(
            "SELECT * FROM transport_overrides WHERE date BETWEEN ? AND ?", (start, end))
        return {row['date']: TransportOverride.from_row(dict(row)) for row in cur.fetchall()}

    def get_default_matrix(self) -> Dict[str, Dict[str, Optional[str]]]:
        raw = self.get_setting(CARPOOL_MATRIX_KEY)
        if not raw:
            return {}
        try:
            matrix = json.loads(raw)
        except ValueError as e:
            logging.error(f"Ungültige Carpool-Matrix in app_settings: {e}")
            return {}
        return matrix if isinstance(matrix, dict) else {}

    def load_month(self, year: int, month0: int) -> dict:
        """
        Lade alle Quellen für einen Monat. Schlägt eine Quelle fehl, wird sie
        geloggt und als leer behandelt, damit der Rest des Kalenders sichtbar bleibt.
        """
        start, end = month_range(year, month0)
        loaders = {
            'events': lambda: self.list_events(start, end),
            'family_events': lambda: self.list_family_events(start, end),
            'programs': self.list_programs,
            'holidays': self.list_holidays,
            'bookings': lambda: self.list_bookings(start, end),
            'sitters': self.list_sitters,
            'overrides': lambda: self.list_transport_overrides(start, end),
            'default_matrix': self.get_default_matrix,
        }
        out = {}
        for name, load in loaders.items():
            try:
                out[name] = load()
            except sqlite3.Error as e:
                logging.error(f"Laden von '{name}' für {start}..{end} fehlgeschlagen: {e}")
                out[name] = {} if name in ('sitters', 'overrides', 'default_matrix') else []
        return out

    # Termine
    def save_event(self, ev: OneOffEvent) -> OneOffEvent:
        d = parse_key(ev.date)
        cur = self.conn.cursor()
        if ev.id is not None:
            cur.execute("UPDATE calendar_events SET date=?, title=?, type=?, notes=? WHERE id=?",
                        (d, ev.title, ev.color_tag, ev.notes, ev.id))
            new_id = ev.id
        else:
            cur.execute("INSERT INTO calendar_events (date, title, type, notes) VALUES (?,?,?,?)",
                        (d, ev.title, ev.color_tag, ev.notes))
            new_id = cur.lastrowid
        self.conn.commit()
        return OneOffEvent(new_id, d, ev.title, ev.color_tag, ev.notes)

    def delete_event(self, event_id: int):
        self.conn.execute("DELETE FROM calendar_events WHERE id=?", (event_id,))
        self.conn.commit()

    def save_family_event(self, fe: FamilyEvent) -> FamilyEvent:
        d = parse_key(fe.date)
        cur = self.conn.cursor()
        if fe.id is not None:
            cur.execute("UPDATE family_events SET date=?, name=?, who=?, notes=? WHERE id=?",
                        (d, fe.name, fe.who, fe.notes, fe.id))
            new_id = fe.id
        else:
            cur.execute("INSERT INTO family_events (date, name, who, notes) VALUES (?,?,?,?)",
                        (d, fe.name, fe.who, fe.notes))
            new_id = cur.lastrowid
        self.conn.commit()
        return FamilyEvent(new_id, d, fe.name, fe.who, fe.notes)

    def delete_family_event(self, event_id: int):
        self.conn.execute("DELETE FROM family_events WHERE id=?", (event_id,))
        self.conn.commit()

    # Programme
    def save_program(self, pr: RecurringProgram) -> RecurringProgram:
        if pr.status not in PROGRAM_STATUSES:
            raise ValueError(f"Unbekannter Programm-Status: {pr.status!r}")
        cur = self.conn.cursor()
        if pr.id is not None:
            cur.execute(
                "UPDATE afterschool_programs SET name=?, day_time=?, location=?, cost=?, status=? WHERE id=?",
                (pr.name, pr.day_time, pr.location, pr.cost, pr.status, pr.id))
            new_id = pr.id
        else:
            cur.execute(
                "INSERT INTO afterschool_programs (name, day_time, location, cost, status) VALUES (?,?,?,?,?)",
                (pr.name, pr.day_time, pr.location, pr.cost, pr.status))
            new_id = cur.lastrowid
        self.conn.commit()
        return RecurringProgram(new_id, pr.name, pr.day_time, pr.status, pr.location, pr.cost)

    def set_program_status(self, program_id: int, status: str):
        if status not in PROGRAM_STATUSES:
            raise ValueError(f"Unbekannter Programm-Status: {status!r}")
        self.conn.execute("UPDATE afterschool_programs SET status=? WHERE id=?", (status, program_id))
        self.conn.commit()

    def delete_program(self, program_id: int):
        self.conn.execute("DELETE FROM afterschool_programs WHERE id=?", (program_id,))
        self.conn.commit()

    # Ferien
    def save_holiday(self, h: Holiday) -> Holiday:
        start = parse_key(h.start_date)
        end = parse_key(h.end_date)
        if end < start:
            raise ValueError(f"Ferienende {end} liegt vor Ferienbeginn {start}")
        cur = self.conn.cursor()
        if h.id is not None:
            cur.execute("UPDATE holidays SET name=?, start_date=?, end_date=? WHERE id=?",
                        (h.name, start, end, h.id))
            new_id = h.id
        else:
            cur.execute("INSERT INTO holidays (name, start_date, end_date) VALUES (?,?,?)",
                        (h.name, start, end))
            new_id = cur.lastrowid
        self.conn.commit()
        return Holiday(new_id, h.name, start, end)

    def delete_holiday(self, holiday_id: int):
        self.conn.execute("DELETE FROM holidays WHERE id=?", (holiday_id,))
        self.conn.commit()

    # Sitter
    def save_sitter(self, s: Sitter) -> Sitter:
        color = s.color if s.color and s.color != 'default' else None
        if color is None and s.id is not None:
            # Umbenennen ohne Farbe: gespeicherte Farbe behalten
            row = self.conn.execute("SELECT color FROM sitters WHERE id=?", (s.id,)).fetchone()
            color = row['color'] if row and row['color'] else None
        if color is None:
            count = self.conn.execute("SELECT COUNT(*) FROM sitters").fetchone()[0]
            color = self.sitter_colors[count % len(self.sitter_colors)]
        cur = self.conn.cursor()
        if s.id is not None:
            cur.execute(
                "UPDATE sitters SET name=?, color=?, contact=?, rate_per_hour=?, notes=? WHERE id=?",
                (s.name, color, s.contact, s.rate_per_hour, s.notes, s.id))
            new_id = s.id
        else:
            cur.execute(
                "INSERT INTO sitters (name, color, contact, rate_per_hour, notes) VALUES (?,?,?,?,?)",
                (s.name, color, s.contact, s.rate_per_hour, s.notes))
            new_id = cur.lastrowid
        self.conn.commit()
        return Sitter(new_id, s.name, color, s.contact, s.rate_per_hour, s.notes)

    def save_booking(self, bk: SitterBooking) -> SitterBooking:
        d = parse_key(bk.date)
        cur = self.conn.cursor()
        if bk.id is not None:
            cur.execute(
                "UPDATE sitter_bookings SET date=?, sitter_id=?, start_time=?, end_time=?, status=? WHERE id=?",
                (d, bk.sitter_id, bk.start_time, bk.end_time, bk.status, bk.id))
            new_id = bk.id
        else:
            cur.execute(
                "INSERT INTO sitter_bookings (date, sitter_id, start_time, end_time, status) VALUES (?,?,?,?,?)",
                (d, bk.sitter_id, bk.start_time, bk.end_time, bk.status))
            new_id = cur.lastrowid
        self.conn.commit()
        return SitterBooking(new_id, d, bk.sitter_id, bk.start_time, bk.end_time, bk.status)

    def delete_booking(self, booking_id: int):
        self.conn.execute("DELETE FROM sitter_bookings WHERE id=?", (booking_id,))
        self.conn.commit()

    # Fahrgemeinschaft
    def save_transport_override(self, date: str, am=UNSET, pm=UNSET) -> TransportOverride:
        """Upsert pro Tag: nur die übergebenen Slots werden geändert."""
        d = parse_key(date)
        merged = merge_override(self.get_transport_override(d), d, am=am, pm=pm)
        if merged.am_person is None and merged.pm_person is None:
            self.conn.execute("DELETE FROM transport_overrides WHERE date=?", (d,))
        else:
            self.conn.execute(
                "REPLACE INTO transport_overrides (date, am_person, pm_person) VALUES (?,?,?)",
                (d, merged.am_person, merged.pm_person))
        self.conn.commit()
        return merged

    def save_default_matrix(self, matrix: Dict[str, Dict[str, Optional[str]]]):
        self.set_setting(CARPOOL_MATRIX_KEY, json.dumps(matrix, ensure_ascii=False))

    # Einstellungen
    def get_setting(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM app_settings WHERE key=?", (key,)).fetchone()
        return row['value'] if row else None

    def set_setting(self, key: str, value: str):
        self.conn.execute("REPLACE INTO app_settings (key, value) VALUES (?,?)", (key, value))
        self.conn.commit()

    def close(self):
        """Schließe die Datenbankverbindung sauber"""
        if self.conn:
            self.conn.close()
            self.conn = None
