from collections import Counter, defaultdict
from typing import Dict

from homebase.models import SOURCE_KINDS, MonthView
from homebase.transport import SCHOOL_WEEKDAYS


def summarize_month(view: MonthView) -> Dict:
    """
    Monats-Zusammenfassung (nur Tage des Monats, ohne Randtage):
      items         : Anzahl Einträge je Quelle (holiday, event, …)
      holiday_days  : Tage, die in Ferien liegen
      school_days   : Mo–Fr ohne Ferien
      carpool       : {Person: {'am': n, 'pm': n}}
    """
    items = Counter({kind: 0 for kind in SOURCE_KINDS})
    holiday_days = 0
    school_days = 0
    carpool = defaultdict(lambda: {'am': 0, 'pm': 0})

    for cell in view.cells:
        if not cell.in_month:
            continue
        for item in cell.items:
            items[item.source_kind] += 1
        if cell.on_holiday:
            holiday_days += 1
        elif cell.weekday in SCHOOL_WEEKDAYS:
            school_days += 1
        if cell.transport is not None:
            if cell.transport.am:
                carpool[cell.transport.am]['am'] += 1
            if cell.transport.pm:
                carpool[cell.transport.pm]['pm'] += 1

    return {
        'items': dict(items),
        'holiday_days': holiday_days,
        'school_days': school_days,
        'carpool': dict(carpool),
    }
