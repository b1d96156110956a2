# src/homebase/workers.py
import logging
from typing import Optional

from PySide6.QtCore import QObject, QThread, Signal

from homebase.calendar_logic import build_month_view
from homebase.data import Database
from homebase.datekey import DateKey


class MonthLoadWorker(QObject):
    """Lädt einen Monat im Hintergrund und baut daraus die MonthView."""
    finished = Signal(int, object)
    error = Signal(int, str)

    def __init__(self, db_path, year: int, month0: int, generation: int, today: Optional[DateKey] = None):
        super().__init__()
        self.db_path = db_path
        self.year = year
        self.month0 = month0
        self.generation = generation
        self.today = today
        self._stopped = False

    def stop(self):
        self._stopped = True

    def run(self):
        if self._stopped:
            return

        db = None
        try:
            db = Database(self.db_path)  # eigene Verbindung im Worker-Thread
            sources = db.load_month(self.year, self.month0)
            view = build_month_view(
                self.year, self.month0,
                events=sources['events'],
                family_events=sources['family_events'],
                programs=sources['programs'],
                holidays=sources['holidays'],
                bookings=sources['bookings'],
                overrides=sources['overrides'],
                default_matrix=sources['default_matrix'],
                sitters=sources['sitters'],
                today=self.today,
            )
            if not self._stopped:
                self.finished.emit(self.generation, view)
        except Exception as e:
            logging.error(f"MonthLoadWorker error ({self.year}-{self.month0 + 1:02d}): {e}")
            if not self._stopped:
                self.error.emit(self.generation, str(e))
        finally:
            if db is not None:
                db.close()


class MonthLoader(QObject):
    """
    Startet pro Monatswechsel einen MonthLoadWorker. Jede Anfrage bekommt eine
    Generation; Ergebnisse älterer Anfragen werden verworfen.
    """
    month_ready = Signal(object)
    error = Signal(str)

    def __init__(self, db_path, today: Optional[DateKey] = None):
        super().__init__()
        self.db_path = db_path
        self.today = today
        self._generation = 0
        self._jobs = []

    @property
    def generation(self) -> int:
        return self._generation

    def request(self, year: int, month0: int) -> int:
        self._generation += 1
        generation = self._generation

        thread = QThread()
        worker = MonthLoadWorker(self.db_path, year, month0, generation, self.today)
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(self._on_loaded)
        worker.error.connect(self._on_error)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        thread.finished.connect(self._prune)
        self._jobs.append((thread, worker))
        thread.start()
        return generation

    def _on_loaded(self, generation: int, view):
        if generation != self._generation:
            logging.info(f"Verworfen: veraltetes Monatsergebnis (Generation {generation}, aktuell {self._generation})")
            return
        self.month_ready.emit(view)

    def _on_error(self, generation: int, msg: str):
        if generation != self._generation:
            logging.info(f"Verworfen: veralteter Ladefehler (Generation {generation}, aktuell {self._generation}): {msg}")
            return
        logging.error(f"Monat konnte nicht geladen werden: {msg}")
        self.error.emit(msg)

    def _prune(self):
        self._jobs = [(t, w) for t, w in self._jobs if t.isRunning()]

    def stop(self):
        for thread, worker in self._jobs:
            worker.stop()
            if thread.isRunning():
                thread.quit()
                thread.wait()
        self._jobs = []
