"""
Tests for schedule aggregation: yearly and monthly summaries and the
personal overview.
"""

from datetime import date

from entities import DaySchedule, INITIAL_PERSONNEL, ShiftLabel, Assignment
from schedule_state import empty_state, sync_personnel, toggle_leave
from solver import generate_schedule
from summary import calculate_summary, group_by_month, personal_overview, process_yearly_schedule


def make_state(*names):
    return sync_personnel(empty_state(), names)


def test_summary_counts_station_records_only():
    days = [
        DaySchedule(date(2025, 12, 3), ShiftLabel.SABAH, [
            Assignment("A", ShiftLabel.SABAH, "Planlama"),
            Assignment("B", ShiftLabel.SABAH),
            Assignment("C", ShiftLabel.LEAVE),
        ]),
        DaySchedule(date(2025, 12, 4), ShiftLabel.SABAH, [
            Assignment("A", ShiftLabel.SABAH, "Board1"),
            Assignment("B", ShiftLabel.SABAH, "Planlama"),
        ]),
    ]
    summary = calculate_summary(days, ["A", "B", "C"])

    assert summary["A"].to_dict() == {'total': 2, 'stations': {'Planlama': 1, 'Board1': 1}}
    assert summary["B"].total == 1
    assert summary["C"].total == 0
    # Special personnel always has an entry
    assert summary["Volkan"].total == 0


def test_twelve_months_with_turkish_labels():
    days = generate_schedule(make_state(*INITIAL_PERSONNEL))
    months = group_by_month(days)

    assert len(months) == 12
    assert months[0].label == "Aralık 2025"
    assert months[1].label == "Ocak 2026"
    assert months[-1].label == "Kasım 2026"
    assert months[0].key == "2025-12"
    assert sum(len(m.days) for m in months) == 365
    assert all(len(m.days) > 27 for m in months)


def test_monthly_summaries_add_up_to_yearly():
    state = toggle_leave(make_state(*INITIAL_PERSONNEL), "2026-01-15", "Eylül")
    days = generate_schedule(state)
    yearly = process_yearly_schedule(days, state.personnel)

    for personnel, entry in yearly.yearly_summary.items():
        monthly_total = sum(m.summary[personnel].total for m in yearly.months)
        assert monthly_total == entry.total

    # Every month lists every roster member, even with zero tasks
    for month in yearly.months:
        assert set(INITIAL_PERSONNEL) <= set(month.summary)


def test_personal_overview():
    state = toggle_leave(make_state("A", "B", "C"), "2025-12-20", "A")
    days = generate_schedule(state)

    overview = personal_overview(days, "A", date(2025, 12, 3))
    assert overview['today'].station == "Planlama"
    assert overview['tomorrow'].shift == ShiftLabel.SABAH
    assert overview['nextLeaveDate'] == date(2025, 12, 20)
    assert overview['monthlyTasks'] > 0
    assert overview['monthlyCriticalTasks'] <= overview['monthlyTasks']


def test_personal_overview_special_personnel():
    days = generate_schedule(make_state("A", "B", "C"))
    overview = personal_overview(days, "Volkan", date(2025, 12, 10))

    assert overview['today'].shift == ShiftLabel.OFF
    assert overview['tomorrow'].station == "Su Anons"
    assert overview['nextLeaveDate'] is None
    assert overview['monthlyTasks'] == overview['monthlyCriticalTasks']


def test_personal_overview_outside_window():
    days = generate_schedule(make_state("A"))
    overview = personal_overview(days, "A", date(2030, 1, 1))

    assert overview['today'] is None
    assert overview['tomorrow'] is None
    assert overview['monthlyTasks'] == 0
