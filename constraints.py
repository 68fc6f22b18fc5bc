"""
Station assignment rules for the greedy roster engine.

- Anti-repetition: nobody sits at the same station two working days in a row
  unless nobody else is left to take it.
- Fairness: fewer sittings at the station first, then fewer sittings in the
  station's class (critical stations vs. boards), then fewer tasks overall.
- Station order: fixed priority order (default) or lowest average load first.
"""

from typing import Dict, List, Sequence, Tuple

from entities import ScheduleConfig, StationOrderPolicy, TaskSummary


def station_class(station: str, config: ScheduleConfig):
    """
    Stations whose combined count is the secondary tie-break for a station.

    Critical stations compare on the critical total, every other station
    (boards and unknown names) on the board total.
    """
    if station in config.critical_stations:
        return config.critical_stations
    return config.board_stations


def fairness_key(
    personnel: str,
    station: str,
    running_summary: TaskSummary,
    config: ScheduleConfig
) -> Tuple[int, int, int]:
    """
    Sort key for a candidate (ascending = better candidate).

    Returns:
        (sittings at this station, sittings in the station class, total tasks)
    """
    entry = running_summary[personnel]
    return (
        entry.station_count(station),
        entry.count_in(station_class(station, config)),
        entry.total,
    )


def build_candidate_pool(
    assignable: Sequence[str],
    station: str,
    last_day_assignments: Dict[str, str]
) -> List[str]:
    """
    Assignable people who did not sit at this station yesterday.

    Falls back to the whole assignable pool when that filter leaves nobody.
    Pool order is the assignable order (roster order).
    """
    pool = [p for p in assignable if last_day_assignments.get(p) != station]
    if not pool:
        pool = list(assignable)
    return pool


def rank_candidates(
    pool: Sequence[str],
    station: str,
    running_summary: TaskSummary,
    config: ScheduleConfig
) -> List[str]:
    """Stable sort of the pool by fairness_key; ties keep pool order"""
    return sorted(pool, key=lambda p: fairness_key(p, station, running_summary, config))


def order_stations(
    stations_to_fill: Sequence[str],
    working_team: Sequence[str],
    running_summary: TaskSummary,
    config: ScheduleConfig
) -> List[str]:
    """
    Order in which today's open stations are visited.

    FIXED keeps the configured priority order; stations missing from it are
    visited last in the order they were given. AVERAGE_LOAD sorts by the
    working team's average sittings per station, ascending, ties by
    priority order.
    """
    ordered = [s for s in config.station_priority if s in stations_to_fill]
    ordered += [s for s in stations_to_fill if s not in ordered]

    if config.station_order != StationOrderPolicy.AVERAGE_LOAD or not working_team:
        return ordered

    def average_load(station: str) -> float:
        counts = [running_summary[p].station_count(station) for p in working_team]
        return sum(counts) / len(counts)

    return sorted(ordered, key=average_load)
