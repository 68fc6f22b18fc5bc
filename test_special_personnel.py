"""
Tests for the special personnel's home-station rule.

The special personnel works their home station on weekday morning shifts
only; on every other day they are off and the station goes back to the team.
"""

from datetime import date

from entities import ScheduleConfig, ShiftLabel
from schedule_state import add_reinforcement, empty_state, sync_personnel, toggle_leave
from solver import generate_schedule

SPECIAL = "Volkan"
HOME = "Su Anons"


def make_state(*names):
    return sync_personnel(empty_state(), names)


def get_day(days, value: str):
    return next(d for d in days if d.date_str == value)


def test_works_home_station_on_weekday_mornings():
    days = generate_schedule(make_state("A", "B", "C", "D", "E"))

    # 2025-12-03 (Wed) and 2025-12-04 (Thu) are morning shifts
    for value in ("2025-12-03", "2025-12-04"):
        day = get_day(days, value)
        assignment = day.get_assignment(SPECIAL)
        assert assignment.shift == ShiftLabel.SABAH
        assert assignment.station == HOME
        assert day.station_holders()[HOME] == SPECIAL


def test_off_on_weekend_morning():
    """2025-12-20 is a Saturday morning shift: the team staffs the home station"""
    days = generate_schedule(make_state("A", "B", "C", "D", "E"))
    day = get_day(days, "2025-12-20")

    assert day.team_shift == ShiftLabel.SABAH
    assert day.get_assignment(SPECIAL).shift == ShiftLabel.OFF
    assert day.get_assignment(SPECIAL).station is None
    assert day.station_holders()[HOME] != SPECIAL


def test_off_on_night_and_off_days():
    days = generate_schedule(make_state("A", "B", "C"))
    for value in ("2025-12-01", "2025-12-07", "2025-12-08"):
        assignment = get_day(days, value).get_assignment(SPECIAL)
        assert assignment.shift == ShiftLabel.OFF
        assert assignment.station is None


def test_off_on_public_holiday():
    config = ScheduleConfig(public_holidays=frozenset({"2025-12-03"}))
    days = generate_schedule(make_state("A", "B", "C"), config)
    day = get_day(days, "2025-12-03")

    assert day.team_shift == ShiftLabel.SABAH
    assert day.get_assignment(SPECIAL).shift == ShiftLabel.OFF
    # Home station goes back into the pool, after Planlama and Frekans
    assert day.get_assignment("C").station == HOME


def test_team_leave_day_turns_everybody_off():
    config = ScheduleConfig(team_leave_days=frozenset({"2025-12-03"}))
    day = get_day(generate_schedule(make_state("A", "B", "C"), config), "2025-12-03")

    assert day.team_shift == ShiftLabel.OFF
    assert all(a.shift == ShiftLabel.OFF and a.station is None for a in day.assignments)


def test_leave_frees_home_station():
    state = toggle_leave(make_state("A", "B", "C"), date(2025, 12, 3), SPECIAL)
    day = get_day(generate_schedule(state), "2025-12-03")

    assert day.get_assignment(SPECIAL).shift == ShiftLabel.LEAVE
    assert day.station_holders()[HOME] == "C"


def test_reinforcement_on_home_station_sends_special_off():
    state = add_reinforcement(make_state("A", "B", "C"), date(2025, 12, 3), "Misafir", HOME)
    day = get_day(generate_schedule(state), "2025-12-03")

    assert day.get_assignment(SPECIAL).shift == ShiftLabel.OFF
    assert day.station_holders()[HOME] == "Misafir"
    assert day.get_assignment("A").station == "Planlama"
    assert day.get_assignment("B").station == "Frekans"
    assert day.get_assignment("C").station == "Board1"


def test_special_counted_in_summary():
    from summary import calculate_summary

    days = generate_schedule(make_state("A", "B", "C"))
    summary = calculate_summary(days, ("A", "B", "C"))
    entry = summary[SPECIAL]

    assert entry.total > 0
    assert entry.stations == {HOME: entry.total}
