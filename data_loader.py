"""
Data loader for the station roster.
Serializes schedule states, generates sample data and loads/saves
states, personnel and settings from the SQLite database.
"""

import json
import logging
import sqlite3
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from entities import (
    Assignment, ScheduleConfig, ScheduleState, ShiftLabel, StationOrderPolicy,
    DEFAULT_CONFIG, INITIAL_PERSONNEL
)
from schedule_state import add_reinforcement, empty_state, sync_personnel, toggle_leave

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1
STATE_NAMES = ("published", "draft")

# Settings keys -> ScheduleConfig fields
SETTINGS_KEYS = ("startDate", "publicHolidays", "teamLeaveDays", "stationOrder")


def serialize_assignment(assignment: Assignment) -> Dict:
    return {
        'personnel': assignment.personnel,
        'shift': assignment.shift.value,
        'station': assignment.station,
        'isReinforcement': assignment.is_reinforcement,
    }


def deserialize_assignment(data: Dict) -> Assignment:
    return Assignment(
        personnel=data['personnel'],
        shift=ShiftLabel(data.get('shift', ShiftLabel.SABAH.value)),
        station=data.get('station'),
        is_reinforcement=bool(data.get('isReinforcement', False)),
    )


def serialize_state(state: ScheduleState) -> Dict:
    """
    Convert a state snapshot into a JSON-compatible dict.

    Sets are written as sorted lists, mappings as lists of [key, value]
    pairs in insertion order. Empty leave sets are kept.
    """
    return {
        'version': STATE_SCHEMA_VERSION,
        'personnel': list(state.personnel),
        'leaves': [
            [personnel, sorted(dates)]
            for personnel, dates in state.leaves.items()
        ],
        'reinforcements': [
            [date_str, [serialize_assignment(a) for a in assignments]]
            for date_str, assignments in state.reinforcements.items()
        ],
    }


def deserialize_state(payload: Optional[Dict]) -> ScheduleState:
    """
    Rebuild a state snapshot from serialize_state() output.

    Args:
        payload: Serialized state, or None for the empty state

    Returns:
        ScheduleState

    Raises:
        ValueError: Unknown schema version
    """
    if payload is None:
        return empty_state()

    # Payloads written before versioning have the same layout as version 1
    version = payload.get('version', STATE_SCHEMA_VERSION)
    if version != STATE_SCHEMA_VERSION:
        raise ValueError(f"Unsupported schedule state version: {version}")

    leaves = {
        personnel: frozenset(dates)
        for personnel, dates in payload.get('leaves', [])
    }
    reinforcements = {
        date_str: tuple(deserialize_assignment(a) for a in assignments)
        for date_str, assignments in payload.get('reinforcements', [])
    }
    return ScheduleState(
        personnel=tuple(payload.get('personnel', [])),
        leaves=leaves,
        reinforcements=reinforcements,
    )


def generate_sample_data() -> ScheduleState:
    """
    Generate a sample state for testing the roster.

    Returns:
        ScheduleState with the reference team, a few leave days and one
        reinforcement
    """
    state = sync_personnel(empty_state(), INITIAL_PERSONNEL)

    # Some leave days
    for leave_date in (date(2025, 12, 15), date(2025, 12, 16), date(2025, 12, 17)):
        state = toggle_leave(state, leave_date, "Berfin")
    for leave_date in (date(2026, 3, 2), date(2026, 3, 3)):
        state = toggle_leave(state, leave_date, "Emir")
    state = toggle_leave(state, date(2026, 1, 5), "Volkan")

    # A reinforcement covering the day Berfin is away
    state = add_reinforcement(state, date(2025, 12, 15), "Emir", "Planlama")

    return state


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def load_schedule_state(db_path: str, name: str = "published") -> ScheduleState:
    """
    Load a stored state ('published' or 'draft').

    A missing row yields the empty state.
    """
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT Payload FROM ScheduleStates WHERE Name = ?", (name,))
        row = cursor.fetchone()
    finally:
        conn.close()

    if not row:
        logger.warning(f"No stored schedule state '{name}' in {db_path}")
        return empty_state()
    return deserialize_state(json.loads(row['Payload']))


def save_schedule_state(db_path: str, name: str, state: ScheduleState, updated_by: Optional[str] = None):
    """Replace a stored state in a single transaction"""
    if name not in STATE_NAMES:
        raise ValueError(f"Unknown schedule state: {name}")

    payload = json.dumps(serialize_state(state), ensure_ascii=False)
    conn = _connect(db_path)
    try:
        with conn:
            conn.execute("""
                INSERT OR REPLACE INTO ScheduleStates (Name, Payload, UpdatedAt, UpdatedBy)
                VALUES (?, ?, ?, ?)
            """, (name, payload, datetime.utcnow().isoformat(), updated_by))
    finally:
        conn.close()
    logger.info(f"Saved schedule state '{name}'")


def load_personnel(db_path: str, include_all: bool = False) -> List[str]:
    """
    Load personnel names from the directory.

    Args:
        db_path: Path to the SQLite database file
        include_all: Also return people not included in the schedule

    Returns:
        Sorted list of names
    """
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        if include_all:
            cursor.execute("SELECT Name FROM Personnel")
        else:
            cursor.execute("SELECT Name FROM Personnel WHERE IncludeInSchedule = 1")
        names = [row['Name'] for row in cursor.fetchall()]
    finally:
        conn.close()
    return sorted(names)


def load_personnel_records(db_path: str) -> List[Dict]:
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT Id, Name, IncludeInSchedule, CreatedAt FROM Personnel ORDER BY Name")
        return [
            {
                'id': row['Id'],
                'name': row['Name'],
                'includeInSchedule': bool(row['IncludeInSchedule']),
                'createdAt': row['CreatedAt'],
            }
            for row in cursor.fetchall()
        ]
    finally:
        conn.close()


def sync_roster_in_database(
    db_path: str,
    updated_by: Optional[str] = None,
    state_names: Iterable[str] = ("draft",)
) -> List[str]:
    """
    Bring stored states in line with the personnel directory.

    Only the draft is synced by default; the published state follows on
    publish. A state whose roster already matches the directory is left
    untouched.

    Returns:
        The synced roster
    """
    roster = load_personnel(db_path)
    for name in state_names:
        state = load_schedule_state(db_path, name)
        if list(state.personnel) == roster:
            continue
        save_schedule_state(db_path, name, sync_personnel(state, roster), updated_by)
    return roster


def load_settings(db_path: str) -> Dict:
    """Raw settings values (decoded JSON) by key"""
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT Key, Value FROM Settings")
        return {row['Key']: json.loads(row['Value']) for row in cursor.fetchall()}
    finally:
        conn.close()


def save_settings(db_path: str, values: Dict):
    """
    Store settings values.

    Raises:
        ValueError: Unknown key or a value that does not parse
    """
    unknown = set(values) - set(SETTINGS_KEYS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    # Reject values that would break config loading
    apply_settings(DEFAULT_CONFIG, values)

    conn = _connect(db_path)
    try:
        with conn:
            for key, value in values.items():
                conn.execute(
                    "INSERT OR REPLACE INTO Settings (Key, Value) VALUES (?, ?)",
                    (key, json.dumps(value, ensure_ascii=False))
                )
    finally:
        conn.close()


def _date_strings(values: Iterable) -> frozenset:
    return frozenset(date.fromisoformat(v).isoformat() for v in values)


def apply_settings(config: ScheduleConfig, settings: Dict) -> ScheduleConfig:
    """Overlay stored settings on a configuration"""
    changes = {}
    if settings.get('startDate'):
        changes['start_date'] = date.fromisoformat(settings['startDate'])
    if 'publicHolidays' in settings:
        changes['public_holidays'] = _date_strings(settings['publicHolidays'] or [])
    if 'teamLeaveDays' in settings:
        changes['team_leave_days'] = _date_strings(settings['teamLeaveDays'] or [])
    if settings.get('stationOrder'):
        changes['station_order'] = StationOrderPolicy(settings['stationOrder'])
    return replace(config, **changes)


def load_schedule_config(db_path: str) -> ScheduleConfig:
    """Reference configuration with the stored settings applied"""
    return apply_settings(DEFAULT_CONFIG, load_settings(db_path))


def config_to_settings(config: ScheduleConfig) -> Dict:
    return {
        'startDate': config.start_date.isoformat(),
        'publicHolidays': sorted(config.public_holidays),
        'teamLeaveDays': sorted(config.team_leave_days),
        'stationOrder': config.station_order.value,
    }


if __name__ == "__main__":
    # Test data generation
    state = generate_sample_data()

    print(f"Generated state with {len(state.personnel)} personnel")
    print(f"Leave entries: {sum(len(d) for d in state.leaves.values())}")
    print(f"Reinforcement days: {len(state.reinforcements)}")
    print(json.dumps(serialize_state(state), ensure_ascii=False, indent=2))
