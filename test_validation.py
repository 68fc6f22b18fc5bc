"""
Tests for schedule validation.

Generated schedules must pass; hand-broken schedules must be reported.
"""

from dataclasses import replace

from data_loader import generate_sample_data
from entities import Assignment, ShiftLabel
from schedule_state import add_reinforcement, empty_state, sync_personnel, toggle_leave
from solver import generate_schedule
from validation import ValidationResult, validate_schedule


def make_state(*names):
    return sync_personnel(empty_state(), names)


def index_of(days, value):
    return next(i for i, d in enumerate(days) if d.date_str == value)


def replace_assignment(days, value, personnel, new_assignment):
    """Copy of days with one person's record on one day replaced"""
    days = list(days)
    i = index_of(days, value)
    assignments = [new_assignment if a.personnel == personnel else a for a in days[i].assignments]
    days[i] = replace(days[i], assignments=assignments)
    return days


def test_result_report():
    result = ValidationResult()
    assert result.is_valid

    result.add_warning("soft")
    assert result.is_valid

    result.add_violation("hard")
    assert not result.is_valid
    assert result.to_dict() == {'isValid': False, 'violations': ["hard"], 'warnings': ["soft"]}
    result.print_report()


def test_sample_schedule_is_valid():
    state = generate_sample_data()
    days = generate_schedule(state)
    result = validate_schedule(days, state)

    result.print_report()
    assert result.is_valid, result.violations


def test_short_roster_schedule_is_valid():
    state = add_reinforcement(make_state("A", "B"), "2025-12-03", "Misafir", "Su Anons")
    state = toggle_leave(state, "2025-12-04", "A")
    days = generate_schedule(state)
    assert validate_schedule(days, state).is_valid


def test_work_on_leave_reported():
    state = toggle_leave(make_state("A", "B", "C"), "2025-12-03", "A")
    days = generate_schedule(state)
    broken = replace_assignment(days, "2025-12-03", "A", Assignment("A", ShiftLabel.SABAH, "Board4"))

    result = validate_schedule(broken, state)
    assert not result.is_valid
    assert any("on leave" in v for v in result.violations)


def test_reserved_station_reported():
    state = add_reinforcement(make_state("A", "B", "C"), "2025-12-03", "Misafir", "Planlama")
    days = generate_schedule(state)
    broken = replace_assignment(days, "2025-12-03", "A", Assignment("A", ShiftLabel.SABAH, "Planlama"))

    result = validate_schedule(broken, state)
    assert any("reserved station" in v for v in result.violations)


def test_special_personnel_rule_reported():
    state = make_state("A", "B", "C")
    days = generate_schedule(state)
    broken = replace_assignment(days, "2025-12-03", "Volkan", Assignment("Volkan", ShiftLabel.OFF))

    result = validate_schedule(broken, state)
    assert any("Volkan should work" in v for v in result.violations)


def test_missing_person_reported():
    state = make_state("A", "B", "C")
    days = list(generate_schedule(state))
    i = index_of(days, "2025-12-05")
    days[i] = replace(days[i], assignments=[a for a in days[i].assignments if a.personnel != "B"])

    result = validate_schedule(days, state)
    assert any("Missing on 2025-12-05: B" in v for v in result.violations)


def test_repeat_with_alternatives_reported():
    """Swapping two people so one keeps yesterday's station is reported"""
    state = make_state("A", "B", "C", "D", "E")
    days = generate_schedule(state)
    i = index_of(days, "2025-12-04")
    yesterday = {a.personnel: a.station for a in days[i - 1].assignments if a.station}

    # Give A the station A had on 2025-12-03, hand A's station to its holder
    today = {a.personnel: a for a in days[i].assignments}
    target_station = yesterday["A"]
    holder = next(p for p, a in today.items() if a.station == target_station)
    swapped = []
    for a in days[i].assignments:
        if a.personnel == "A":
            swapped.append(replace(a, station=target_station))
        elif a.personnel == holder:
            swapped.append(replace(a, station=today["A"].station))
        else:
            swapped.append(a)

    days = list(days)
    days[i] = replace(days[i], assignments=swapped)
    result = validate_schedule(days, state)
    assert any("A repeats" in v for v in result.violations)
