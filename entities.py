"""
Data models for the station roster.
Shift labels, assignments, day schedules, the schedule state snapshot
and the fixed roster configuration.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class ShiftLabel(Enum):
    """Shift labels used in the rotating cycle and in assignments"""
    SABAH = "SABAH"  # Morning shift
    GECE = "GECE"  # Night shift
    OFF = "OFF"  # Not working
    LEAVE = "Yıllık İzin"  # Approved annual leave

    @property
    def is_working(self) -> bool:
        """True for the two shifts that staff stations"""
        return self in (ShiftLabel.SABAH, ShiftLabel.GECE)

    @property
    def display_name(self) -> str:
        display_names = {
            "SABAH": "Sabah",
            "GECE": "Gece",
            "OFF": "Off",
            "Yıllık İzin": "Yıllık İzin",
        }
        return display_names[self.value]


class StationOrderPolicy(Enum):
    """
    Order in which open stations are visited by the assignment engine.

    FIXED: priority order from the configuration. If personnel run short,
           the last boards stay empty, never the critical stations.
    AVERAGE_LOAD: lowest working-team average load per station first.
                  Kept as an alternate policy only.
    """
    FIXED = "fixed"
    AVERAGE_LOAD = "average_load"


# Reference configuration - FALLBACK VALUES
# The Settings table can override the start date, holidays and team leave days.
SHIFT_CYCLE: Tuple[ShiftLabel, ...] = (
    ShiftLabel.OFF, ShiftLabel.OFF,
    ShiftLabel.SABAH, ShiftLabel.SABAH,
    ShiftLabel.OFF, ShiftLabel.OFF,
    ShiftLabel.GECE, ShiftLabel.GECE,
)

STATIONS: Tuple[str, ...] = (
    "Planlama",
    "Frekans",
    "Su Anons",
    "Board1",
    "Board2",
    "Board3",
    "Board4",
)

# Critical stations first, then boards in numeric order
STATION_PRIORITY_ORDER: Tuple[str, ...] = STATIONS

CRITICAL_STATIONS: FrozenSet[str] = frozenset({"Planlama", "Frekans", "Su Anons"})
BOARD_STATIONS: FrozenSet[str] = frozenset({"Board1", "Board2", "Board3", "Board4"})

INITIAL_PERSONNEL: Tuple[str, ...] = ("Hüseyin", "Berfin", "Eylül", "Emir", "Kurtuluş")
SPECIAL_PERSONNEL = "Volkan"
SPECIAL_PERSONNEL_STATION = "Su Anons"

SCHEDULE_START_DATE = date(2025, 12, 1)
SCHEDULE_MONTHS = 12

# YYYY-MM-DD
PUBLIC_HOLIDAYS: FrozenSet[str] = frozenset()
TEAM_LEAVE_DAYS: FrozenSet[str] = frozenset()

MONTH_NAMES_TR = (
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
)


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Fixed, roster-independent constants of one schedule generation.

    Frozen and built from tuples/frozensets so it can be used as a cache key.
    The shift cycle epoch is the schedule start date.
    """
    start_date: date = SCHEDULE_START_DATE
    months: int = SCHEDULE_MONTHS
    stations: Tuple[str, ...] = STATIONS
    station_priority: Tuple[str, ...] = STATION_PRIORITY_ORDER
    critical_stations: FrozenSet[str] = CRITICAL_STATIONS
    board_stations: FrozenSet[str] = BOARD_STATIONS
    shift_cycle: Tuple[ShiftLabel, ...] = SHIFT_CYCLE
    special_personnel: str = SPECIAL_PERSONNEL
    special_station: str = SPECIAL_PERSONNEL_STATION
    public_holidays: FrozenSet[str] = PUBLIC_HOLIDAYS
    team_leave_days: FrozenSet[str] = TEAM_LEAVE_DAYS
    station_order: StationOrderPolicy = StationOrderPolicy.FIXED

    @property
    def cycle_start_date(self) -> date:
        return self.start_date


DEFAULT_CONFIG = ScheduleConfig()


@dataclass(frozen=True)
class Assignment:
    """
    One person's record for one day.

    station is set only while the person actively works a station that day;
    it is None for off, on-leave and working-but-unassigned records.
    """
    personnel: str
    shift: ShiftLabel
    station: Optional[str] = None
    is_reinforcement: bool = False

    @property
    def counts_as_task(self) -> bool:
        """A station sitting on a working shift"""
        return bool(self.station) and self.shift not in (ShiftLabel.OFF, ShiftLabel.LEAVE)


@dataclass
class DaySchedule:
    """All assignments of one calendar day, sorted by personnel name"""
    date: date
    team_shift: ShiftLabel
    assignments: List[Assignment] = field(default_factory=list)

    @property
    def date_str(self) -> str:
        return self.date.isoformat()

    def get_assignment(self, personnel: str) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.personnel == personnel:
                return assignment
        return None

    def station_holders(self) -> Dict[str, str]:
        """Map station -> personnel for every station record of the day"""
        return {a.station: a.personnel for a in self.assignments if a.station}


@dataclass(frozen=True)
class ScheduleState:
    """
    Snapshot of the admin-owned inputs of the schedule.

    Never mutated in place; changes produce a new snapshot
    (see schedule_state.py).
    """
    personnel: Tuple[str, ...] = ()
    leaves: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    reinforcements: Dict[str, Tuple[Assignment, ...]] = field(default_factory=dict)

    def is_on_leave(self, personnel: str, date_str: str) -> bool:
        return date_str in self.leaves.get(personnel, frozenset())

    def reinforcements_for(self, date_str: str) -> Tuple[Assignment, ...]:
        return self.reinforcements.get(date_str, ())


@dataclass
class PersonSummary:
    """Task counters for one person"""
    total: int = 0
    stations: Dict[str, int] = field(default_factory=dict)

    def station_count(self, station: str) -> int:
        return self.stations.get(station, 0)

    def count_in(self, stations) -> int:
        return sum(self.stations.get(s, 0) for s in stations)

    def to_dict(self) -> Dict:
        return {'total': self.total, 'stations': dict(self.stations)}


class TaskSummary(dict):
    """
    Per-person task counters: personnel -> PersonSummary.

    Reading a missing person inserts a zero entry, so every person ever
    looked at has a summary entry afterwards.
    """

    def __missing__(self, personnel: str) -> PersonSummary:
        entry = PersonSummary()
        self[personnel] = entry
        return entry

    def ensure(self, personnel: str) -> PersonSummary:
        return self[personnel]

    def record(self, personnel: str, station: str):
        entry = self[personnel]
        entry.total += 1
        entry.stations[station] = entry.stations.get(station, 0) + 1

    def to_dict(self) -> Dict[str, Dict]:
        return {name: entry.to_dict() for name, entry in self.items()}


@dataclass
class CalendarDay:
    """Calendar facts for one day of the schedule window"""
    date: date
    is_weekend: bool
    is_holiday: bool
    is_team_leave_day: bool

    @property
    def date_str(self) -> str:
        return self.date.isoformat()

    @property
    def weekday(self) -> int:
        """Monday=0, Sunday=6"""
        return self.date.weekday()


def format_month_label(year: int, month: int) -> str:
    """Turkish month + year label, e.g. 'Aralık 2025'"""
    return f"{MONTH_NAMES_TR[month - 1]} {year}"
