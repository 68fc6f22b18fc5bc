"""
Schedule generator for the station roster.

Walks the schedule window day by day and builds every day's assignments:

1. Leave records for everybody on leave today
2. Reinforcements (granted their station directly, bypassing fairness)
3. The special personnel's standing home-station rule
4. Greedy station assignment for the rest of the working team

The running summary and yesterday's stations are accumulated forward only,
so a day never depends on a later day and the whole window is recomputed
from the state on every call.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from calendar_days import iter_schedule_days, resolve_team_shift
from constraints import build_candidate_pool, order_stations, rank_candidates
from entities import (
    Assignment, CalendarDay, DaySchedule, ScheduleConfig, ScheduleState,
    ShiftLabel, TaskSummary, DEFAULT_CONFIG
)

logger = logging.getLogger(__name__)


TURKISH_ALPHABET = "abcçdefgğhıijklmnoöprsştuüvyz"
_ALPHABET_RANK = {letter: rank for rank, letter in enumerate(TURKISH_ALPHABET)}


def turkish_lower(text: str) -> str:
    """Lowercase with the dotted/dotless i pairs (I -> ı, İ -> i)"""
    return text.replace("I", "ı").replace("İ", "i").lower()


def personnel_sort_key(name: str):
    """
    Case-insensitive name order in the Turkish alphabet, exact name as tie-break.

    Spaces, digits and punctuation sort before letters, letters outside the
    alphabet after it, both by code point.
    """
    ranks = tuple(_char_rank(ch) for ch in turkish_lower(name))
    return (ranks, name)


def _char_rank(ch: str):
    if ch in _ALPHABET_RANK:
        return (1, _ALPHABET_RANK[ch])
    return (2 if ch.isalpha() else 0, ord(ch))


def is_special_on_shift(day: CalendarDay, team_shift: ShiftLabel) -> bool:
    """Weekday morning shift that is neither a holiday nor a team leave day"""
    return (
        team_shift == ShiftLabel.SABAH
        and not day.is_weekend
        and not day.is_holiday
        and not day.is_team_leave_day
    )


def plan_day(
    day: CalendarDay,
    state: ScheduleState,
    config: ScheduleConfig,
    running_summary: TaskSummary,
    last_day_assignments: Dict[str, str]
) -> Tuple[DaySchedule, Dict[str, str]]:
    """
    Build the assignments of one day.

    Args:
        day: Calendar facts of the day
        state: Schedule state snapshot
        config: Schedule configuration
        running_summary: Task counters so far (updated in place)
        last_day_assignments: personnel -> station of the previous day

    Returns:
        Tuple of (day schedule, personnel -> station of this day)
    """
    date_str = day.date_str
    team_shift = resolve_team_shift(day, config)
    special = config.special_personnel
    day_reinforcements = state.reinforcements_for(date_str)

    assignments: List[Assignment] = []
    current_day_assignments: Dict[str, str] = {}

    # Leave first: it overrides every other record of the day
    on_leave: Set[str] = set()
    everyone = [*state.personnel, special, *(r.personnel for r in day_reinforcements)]
    for personnel in dict.fromkeys(everyone):
        if state.is_on_leave(personnel, date_str):
            assignments.append(Assignment(personnel, ShiftLabel.LEAVE))
            on_leave.add(personnel)

    covered_stations: Set[str] = set()
    reinforced: Set[str] = set()
    for reinf in day_reinforcements:
        running_summary.ensure(reinf.personnel)
        if reinf.personnel in on_leave:
            continue
        reinforced.add(reinf.personnel)
        if team_shift.is_working and reinf.station:
            covered_stations.add(reinf.station)
            running_summary.record(reinf.personnel, reinf.station)
            current_day_assignments[reinf.personnel] = reinf.station
            assignments.append(Assignment(reinf.personnel, team_shift, reinf.station, is_reinforcement=True))
        else:
            assignments.append(Assignment(reinf.personnel, team_shift, is_reinforcement=True))

    special_on_shift = is_special_on_shift(day, team_shift)
    special_working = (
        special_on_shift
        and special not in on_leave
        and special not in reinforced
        and config.special_station not in covered_stations
    )
    if special not in on_leave and special not in reinforced:
        if special_working:
            assignments.append(Assignment(special, ShiftLabel.SABAH, config.special_station))
            current_day_assignments[special] = config.special_station
            running_summary.record(special, config.special_station)
        else:
            assignments.append(Assignment(special, ShiftLabel.OFF))

    working_team = [
        p for p in dict.fromkeys(state.personnel)
        if p not in on_leave and p not in reinforced and p != special
    ]

    if team_shift.is_working:
        assignments.extend(_assign_stations(
            day, team_shift, config, working_team, covered_stations,
            special_working, current_day_assignments, running_summary,
            last_day_assignments
        ))
    else:
        assignments.extend(Assignment(p, ShiftLabel.OFF) for p in working_team)

    assignments.sort(key=lambda a: personnel_sort_key(a.personnel))
    return DaySchedule(date=day.date, team_shift=team_shift, assignments=assignments), current_day_assignments


def _assign_stations(
    day: CalendarDay,
    team_shift: ShiftLabel,
    config: ScheduleConfig,
    working_team: List[str],
    covered_stations: Set[str],
    special_working: bool,
    current_day_assignments: Dict[str, str],
    running_summary: TaskSummary,
    last_day_assignments: Dict[str, str]
) -> List[Assignment]:
    """Greedy fill of today's open stations from the working team"""
    if special_working:
        # Only on weekday mornings; everywhere else the full set applies
        stations = [s for s in config.stations if s != config.special_station]
    else:
        stations = list(config.stations)
        if config.special_station not in stations:
            stations.append(config.special_station)

    special_station_today = current_day_assignments.get(config.special_personnel)
    stations_to_fill = [
        s for s in stations
        if s not in covered_stations and s != special_station_today
    ]

    assignments: List[Assignment] = []
    assignable = list(working_team)
    ordered_stations = order_stations(stations_to_fill, working_team, running_summary, config)

    for index, station in enumerate(ordered_stations):
        if not assignable:
            logger.debug(f"{day.date_str}: no personnel left for {', '.join(ordered_stations[index:])}")
            break

        pool = build_candidate_pool(assignable, station, last_day_assignments)
        chosen = rank_candidates(pool, station, running_summary, config)[0]

        assignments.append(Assignment(chosen, team_shift, station))
        current_day_assignments[chosen] = station
        running_summary.record(chosen, station)
        assignable.remove(chosen)

    # Overstaffed day: working, no station
    assignments.extend(Assignment(p, team_shift) for p in assignable)
    return assignments


class ScheduleGenerator:
    """
    Generates the full day-by-day schedule for one state snapshot.

    A generator holds no state across generate() calls: the running summary
    and yesterday's stations are rebuilt from day one every time.
    """

    def __init__(self, state: ScheduleState, config: Optional[ScheduleConfig] = None):
        self.state = state
        self.config = config or DEFAULT_CONFIG
        self.running_summary = TaskSummary()

    def generate(self) -> List[DaySchedule]:
        """
        Walk the whole window once.

        Returns:
            One DaySchedule per calendar day, chronological, no gaps
        """
        running_summary = TaskSummary()
        for personnel in [*self.state.personnel, self.config.special_personnel]:
            running_summary.ensure(personnel)

        last_day_assignments: Dict[str, str] = {}
        schedule: List[DaySchedule] = []

        for day in iter_schedule_days(self.config):
            day_schedule, last_day_assignments = plan_day(
                day, self.state, self.config, running_summary, last_day_assignments
            )
            schedule.append(day_schedule)

        self.running_summary = running_summary
        logger.info(
            f"Generated {len(schedule)} days for {len(self.state.personnel)} personnel "
            f"({len(self.state.reinforcements)} reinforcement days)"
        )
        return schedule


def generate_schedule(state: ScheduleState, config: Optional[ScheduleConfig] = None) -> List[DaySchedule]:
    """
    Convenience function to generate the schedule for a state snapshot.

    Args:
        state: Schedule state (personnel, leaves, reinforcements)
        config: Schedule configuration (defaults to the reference configuration)

    Returns:
        List of DaySchedule, one per day of the window
    """
    return ScheduleGenerator(state, config).generate()
