# tests/test_calendar_logic.py

import calendar

import pytest

from homebase.calendar_logic import (
    aggregate_events, build_month_grid, build_month_view, month_range,
    month_title, shift_month,
)
from homebase.datekey import add_days, weekday
from homebase.models import (
    FamilyEvent, Holiday, OneOffEvent, ProgramSchedule, RecurringProgram,
    Sitter, SitterBooking, TransportAssignment, TransportOverride,
)


@pytest.mark.parametrize("year", range(2020, 2031))
def test_grid_completeness(year):
    for month0 in range(12):
        cells = build_month_grid(year, month0)
        assert len(cells) == 42
        assert cells[0].weekday == 0
        # lückenlos aufeinanderfolgende Tage mit passendem Wochentag
        for a, b in zip(cells, cells[1:]):
            assert add_days(a.date, 1) == b.date
        assert all(c.weekday == weekday(c.date) for c in cells)
        flags = [c.in_month for c in cells]
        first = flags.index(True)
        count = sum(flags)
        assert flags[first:first + count] == [True] * count
        assert count == calendar.monthrange(year, month0 + 1)[1]


def test_december_rolls_into_next_year():
    cells = build_month_grid(2024, 11)
    trailing = [c for c in cells if not c.in_month and c.date > "2024-12-31"]
    assert trailing[0].date == "2025-01-01"
    assert cells[-1].date == "2025-01-11"


def test_january_leads_from_previous_year():
    cells = build_month_grid(2025, 0)
    leading = [c for c in cells if not c.in_month and c.date < "2025-01-01"]
    assert [c.date for c in leading] == ["2024-12-29", "2024-12-30", "2024-12-31"]
    assert leading[-1].date == "2024-12-31"


def test_leap_february():
    assert sum(c.in_month for c in build_month_grid(2024, 1)) == 29
    assert sum(c.in_month for c in build_month_grid(2023, 1)) == 28


def test_month_starting_on_sunday_has_no_leading_cells():
    # Februar 2015: beginnt Sonntag, genau 4 Wochen, 14 Randtage am Ende
    cells = build_month_grid(2015, 1)
    assert cells[0].date == "2015-02-01" and cells[0].in_month
    assert sum(not c.in_month for c in cells) == 14


def test_shift_month_and_title():
    assert shift_month(2024, 11, 1) == (2025, 0)
    assert shift_month(2025, 0, -1) == (2024, 11)
    assert shift_month(2025, 2, 0) == (2025, 2)
    assert month_title(2025, 2) == "March 2025"
    assert month_title(2024, 12) == "January 2025"
    assert month_range(2025, 2) == ("2025-03-01", "2025-03-31")


def test_holiday_range_inclusion():
    xmas = Holiday(1, "Winter Break", "2024-12-23", "2024-12-31")
    buckets = aggregate_events("2024-12-20", "2025-01-02", holidays=[xmas])
    assert buckets["2024-12-25"].on_holiday
    assert buckets["2024-12-25"].items[0].title == "Winter Break"
    assert buckets["2024-12-23"].on_holiday and buckets["2024-12-31"].on_holiday
    assert not buckets["2025-01-01"].on_holiday
    assert buckets["2025-01-01"].items == ()


def test_overlapping_holidays_both_render():
    a = Holiday(1, "Winter Break", "2024-12-23", "2025-01-03")
    b = Holiday(2, "Office Closed", "2024-12-24", "2024-12-26")
    buckets = aggregate_events("2024-12-24", "2024-12-24", holidays=[a, b])
    assert [i.title for i in buckets["2024-12-24"].items] == ["Winter Break", "Office Closed"]


def test_fixed_ordering_within_a_day():
    d = "2025-03-05"   # Mittwoch
    buckets = aggregate_events(
        d, d,
        events=[OneOffEvent(1, d, "Dentist", "red")],
        family_events=[FamilyEvent(2, d, "Grandma visits")],
        programs=[RecurringProgram(3, "Soccer", "Wed 4pm", "enrolled")],
        holidays=[Holiday(4, "Teacher Day", d, d)],
        bookings=[SitterBooking(5, d, 7, "18:00", "22:00")],
        sitters={7: Sitter(7, "Maya", "#BA68C8")},
    )
    items = buckets[d].items
    assert [i.source_kind for i in items] == ["holiday", "event", "family_event", "program", "booking"]
    assert [i.color_tag for i in items] == ["holiday", "red", "gold", "program", "#BA68C8"]
    assert items[4].title == "Maya"
    assert (items[4].start_time, items[4].end_time) == ("18:00", "22:00")
    assert items[3].start_time == "16:00"


def test_every_date_in_range_has_a_bucket_even_without_sources():
    buckets = aggregate_events("2025-02-01", "2025-02-28")
    assert list(buckets) == [f"2025-02-{d:02d}" for d in range(1, 29)]
    assert all(not b.on_holiday and b.items == () for b in buckets.values())


def test_program_visibility_by_status():
    programs = [
        RecurringProgram(1, "Chess", "Mon", "consider"),
        RecurringProgram(2, "Art", "Mon", "waitlist"),
        RecurringProgram(3, "Swim", "Mon", "enrolled"),
    ]
    buckets = aggregate_events("2025-03-03", "2025-03-03", programs=programs)
    assert [i.title for i in buckets["2025-03-03"].items] == ["Art", "Swim"]


def test_malformed_program_degrades_to_not_shown():
    programs = [
        RecurringProgram(1, "Mystery", None, "enrolled"),
        RecurringProgram(2, "Vague", "afternoons", "enrolled"),
    ]
    buckets = aggregate_events("2025-03-01", "2025-03-31", programs=programs)
    assert all(b.items == () for b in buckets.values())


def test_structured_schedule_overrides_text():
    pr = RecurringProgram(1, "Chess", "Mon", "enrolled",
                          schedule=ProgramSchedule(frozenset({3})))
    buckets = aggregate_events("2025-03-03", "2025-03-05", programs=[pr])
    assert buckets["2025-03-03"].items == ()
    assert buckets["2025-03-05"].items[0].title == "Chess"


def test_rows_outside_range_are_ignored():
    buckets = aggregate_events(
        "2025-03-01", "2025-03-31",
        events=[OneOffEvent(1, "2025-04-01", "Later"), OneOffEvent(2, "bogus", "Broken")],
        bookings=[SitterBooking(3, "2025-02-28", None)],
    )
    assert all(b.items == () for b in buckets.values())


def test_unknown_colors_and_sitters_fall_back():
    d = "2025-03-10"
    buckets = aggregate_events(
        d, d,
        events=[OneOffEvent(1, d, "Party", "purple")],
        bookings=[SitterBooking(2, d, 99)],
    )
    ev, bk = buckets[d].items
    assert ev.color_tag == "default"
    assert (bk.title, bk.color_tag) == ("Sitter", "default")


def test_aggregation_is_idempotent():
    kwargs = dict(
        events=[OneOffEvent(1, "2025-03-14", "Pi Day", "gold")],
        programs=[RecurringProgram(2, "Piano", "Tue/Thu 3-4pm", "enrolled")],
        holidays=[Holiday(3, "Spring Break", "2025-03-24", "2025-03-28")],
    )
    first = aggregate_events("2025-03-01", "2025-03-31", **kwargs)
    second = aggregate_events("2025-03-01", "2025-03-31", **kwargs)
    assert first == second


def test_end_to_end_march_2025():
    soccer = RecurringProgram(1, "Soccer", "Wed 4pm", "enrolled")
    spring = Holiday(2, "Spring Break", "2025-03-24", "2025-03-28")
    view = build_month_view(2025, 2, programs=[soccer], holidays=[spring])

    assert view.title == "March 2025"
    assert len(view.cells) == 42 and len(view.weeks) == 6

    wednesdays = [c for c in view.cells if c.in_month and c.weekday == 3]
    assert [c.date for c in wednesdays] == ["2025-03-05", "2025-03-12", "2025-03-19", "2025-03-26"]
    assert all("Soccer" in [i.title for i in c.items] for c in wednesdays)

    for day in range(24, 29):
        cell = view.cell(f"2025-03-{day}")
        assert cell.on_holiday
        assert cell.items[0].title == "Spring Break"
    assert not view.cell("2025-03-29").on_holiday

    assert [i.title for i in view.cell("2025-03-26").items] == ["Spring Break", "Soccer"]

    # Randtage (26.02. ist ein Mittwoch) bleiben leer
    feb26 = view.cell("2025-02-26")
    assert not feb26.in_month and feb26.items == ()


def test_month_view_transport_and_today():
    matrix = {"Mon": {"AM": "Alice", "PM": "Bob"}}
    overrides = {"2025-03-10": TransportOverride("2025-03-10", am_person="Carol")}
    view = build_month_view(2025, 2, overrides=overrides, default_matrix=matrix,
                            today="2025-03-10")
    assert view.cell("2025-03-03").transport == TransportAssignment("Alice", "Bob")
    assert view.cell("2025-03-10").transport == TransportAssignment("Carol", "Bob")
    assert view.cell("2025-03-04").transport == TransportAssignment("", "")
    assert view.cell("2025-03-01").transport is None        # Samstag
    assert view.cell("2025-02-24").transport is None        # Randtag
    assert view.cell("2025-03-10").is_today
    assert sum(c.is_today for c in view.cells) == 1
