"""
Validation module for generated schedules.
Validates all rules and constraints after generation.
"""

from collections import Counter
from typing import Dict, List, Optional

from entities import (
    DaySchedule, ScheduleConfig, ScheduleState, ShiftLabel, StationOrderPolicy,
    DEFAULT_CONFIG
)
from solver import is_special_on_shift
from calendar_days import get_schedule_days
from summary import calculate_summary, task_spread


class ValidationResult:
    """Result of validation with any violations found"""

    def __init__(self):
        self.is_valid = True
        self.violations = []
        self.warnings = []

    def add_violation(self, message: str):
        """Add a hard rule violation"""
        self.is_valid = False
        self.violations.append(message)

    def add_warning(self, message: str):
        """Add a soft rule warning"""
        self.warnings.append(message)

    def to_dict(self) -> Dict:
        return {
            'isValid': self.is_valid,
            'violations': list(self.violations),
            'warnings': list(self.warnings),
        }

    def print_report(self):
        """Print validation report"""
        print("\n" + "=" * 60)
        print("VALIDATION REPORT")
        print("=" * 60)

        if self.is_valid and not self.warnings:
            print("✓ All validations passed!")
        else:
            if self.violations:
                print(f"\n✗ VIOLATIONS FOUND: {len(self.violations)}")
                for i, violation in enumerate(self.violations, 1):
                    print(f"  {i}. {violation}")

            if self.warnings:
                print(f"\n⚠ WARNINGS: {len(self.warnings)}")
                for i, warning in enumerate(self.warnings, 1):
                    print(f"  {i}. {warning}")

            if not self.violations:
                print("\n✓ No hard rule violations (warnings only)")

        print("=" * 60)


def validate_schedule(
    days: List[DaySchedule],
    state: ScheduleState,
    config: Optional[ScheduleConfig] = None
) -> ValidationResult:
    """
    Validate a generated schedule against all rules.

    Args:
        days: Generated schedule
        state: State the schedule was generated from
        config: Schedule configuration

    Returns:
        ValidationResult with any violations or warnings
    """
    config = config or DEFAULT_CONFIG
    result = ValidationResult()

    validate_one_record_per_day(result, days)
    validate_all_personnel_present(result, days, state, config)
    validate_leave_exclusivity(result, days, state)
    validate_reinforcement_stations(result, days, state)
    validate_special_personnel(result, days, state, config)
    validate_station_repetition(result, days, config)
    validate_fairness(result, days, state, config)

    return result


def validate_one_record_per_day(result: ValidationResult, days: List[DaySchedule]):
    """Validate that each person has at most one record per day"""
    for day in days:
        counts = Counter(a.personnel for a in day.assignments)
        for personnel, count in counts.items():
            if count > 1:
                result.add_violation(f"{personnel} has {count} records on {day.date_str}")


def validate_all_personnel_present(
    result: ValidationResult,
    days: List[DaySchedule],
    state: ScheduleState,
    config: ScheduleConfig
):
    """Validate that every roster member and the special personnel appear every day"""
    expected = set(state.personnel) | {config.special_personnel}
    for day in days:
        present = {a.personnel for a in day.assignments}
        missing = expected - present
        if missing:
            result.add_violation(f"Missing on {day.date_str}: {', '.join(sorted(missing))}")

    expected_dates = [d.date for d in get_schedule_days(config)]
    if [day.date for day in days] != expected_dates:
        result.add_violation(
            f"Schedule covers {len(days)} days, expected {len(expected_dates)} consecutive days"
        )


def validate_leave_exclusivity(result: ValidationResult, days: List[DaySchedule], state: ScheduleState):
    """Validate that people on leave have a leave record and nothing else"""
    for day in days:
        for assignment in day.assignments:
            on_leave = state.is_on_leave(assignment.personnel, day.date_str)
            if on_leave and assignment.shift != ShiftLabel.LEAVE:
                result.add_violation(
                    f"{assignment.personnel} is on leave on {day.date_str} "
                    f"but has a {assignment.shift.display_name} record"
                )
            elif not on_leave and assignment.shift == ShiftLabel.LEAVE:
                result.add_violation(
                    f"{assignment.personnel} has a leave record on {day.date_str} without a leave entry"
                )


def validate_reinforcement_stations(result: ValidationResult, days: List[DaySchedule], state: ScheduleState):
    """Validate that a reinforcement's station is not given to anybody else that day"""
    for day in days:
        if not day.team_shift.is_working:
            continue
        reserved = {
            r.station for r in state.reinforcements_for(day.date_str)
            if r.station and not state.is_on_leave(r.personnel, day.date_str)
        }
        for assignment in day.assignments:
            if assignment.station in reserved and not assignment.is_reinforcement:
                result.add_violation(
                    f"{assignment.personnel} assigned to reserved station {assignment.station} "
                    f"on {day.date_str}"
                )


def validate_special_personnel(
    result: ValidationResult,
    days: List[DaySchedule],
    state: ScheduleState,
    config: ScheduleConfig
):
    """Validate the special personnel's home-station rule"""
    special = config.special_personnel
    calendar = {d.date: d for d in get_schedule_days(config)}

    for day in days:
        assignment = day.get_assignment(special)
        if assignment is None or assignment.shift == ShiftLabel.LEAVE or assignment.is_reinforcement:
            continue

        calendar_day = calendar.get(day.date)
        on_shift = calendar_day is not None and is_special_on_shift(calendar_day, day.team_shift)
        home_reserved = any(
            r.station == config.special_station and not state.is_on_leave(r.personnel, day.date_str)
            for r in state.reinforcements_for(day.date_str)
        )

        if on_shift and not home_reserved:
            if assignment.station != config.special_station or assignment.shift != ShiftLabel.SABAH:
                result.add_violation(
                    f"{special} should work {config.special_station} on {day.date_str}"
                )
        elif assignment.shift != ShiftLabel.OFF or assignment.station:
            result.add_violation(f"{special} should be off on {day.date_str}")


def _engine_filled(day: DaySchedule, config: ScheduleConfig) -> List[str]:
    return [
        a.station for a in day.assignments
        if a.station and not a.is_reinforcement and a.personnel != config.special_personnel
    ]


def _processing_position(station: str, config: ScheduleConfig) -> int:
    if station in config.station_priority:
        return config.station_priority.index(station)
    return len(config.station_priority)


def validate_station_repetition(result: ValidationResult, days: List[DaySchedule], config: ScheduleConfig):
    """
    Validate that nobody sits at the same station two days in a row.

    A repeat is allowed only when the person was the last one left for the
    station: no working record without a station that day and, with the
    fixed station order, the repeated station was the last one filled.
    """
    for yesterday, today in zip(days, days[1:]):
        if (today.date - yesterday.date).days != 1:
            continue
        yesterday_stations = {a.personnel: a.station for a in yesterday.assignments if a.station}
        filled = _engine_filled(today, config)
        leftovers = [
            a for a in today.assignments
            if a.shift.is_working and not a.station and not a.is_reinforcement
            and a.personnel != config.special_personnel
        ]
        last_filled = max(filled, key=lambda s: _processing_position(s, config), default=None)

        for assignment in today.assignments:
            if not assignment.station or assignment.is_reinforcement:
                continue
            if assignment.personnel == config.special_personnel:
                continue
            if yesterday_stations.get(assignment.personnel) != assignment.station:
                continue

            exhausted = not leftovers and (
                config.station_order != StationOrderPolicy.FIXED
                or assignment.station == last_filled
            )
            if not exhausted:
                result.add_violation(
                    f"{assignment.personnel} repeats {assignment.station} on {today.date_str}"
                )


def validate_fairness(
    result: ValidationResult,
    days: List[DaySchedule],
    state: ScheduleState,
    config: ScheduleConfig
):
    """Warn when total task counts of the roster drift far apart"""
    if not state.personnel:
        return
    summary = calculate_summary(days, state.personnel, config)
    spread = task_spread(summary, state.personnel)
    if spread > len(config.shift_cycle):
        result.add_warning(
            f"Task totals differ by {spread} between roster members "
            f"(more than one cycle of {len(config.shift_cycle)} days)"
        )
