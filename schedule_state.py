"""
Changes to the schedule state.

Every operation returns a new ScheduleState; the given snapshot is never
modified. The generated schedule is always recomputed from the result.
"""

from dataclasses import replace
from datetime import date
from typing import Iterable, Union

from entities import Assignment, ScheduleState, ShiftLabel, SPECIAL_PERSONNEL


class DuplicateReinforcementError(ValueError):
    """The person is already a reinforcement on that date"""

    def __init__(self, personnel: str, date_str: str):
        super().__init__(f"{personnel} is already a reinforcement on {date_str}")
        self.personnel = personnel
        self.date_str = date_str


def to_date_str(value: Union[date, str]) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return value


def empty_state() -> ScheduleState:
    return ScheduleState(personnel=(), leaves={}, reinforcements={})


def toggle_leave(state: ScheduleState, leave_date: Union[date, str], personnel: str) -> ScheduleState:
    """
    Add the date to the person's leave dates, or remove it if present.

    The person's entry stays in the mapping (possibly empty) after a removal.
    """
    date_str = to_date_str(leave_date)
    person_leaves = set(state.leaves.get(personnel, frozenset()))
    if date_str in person_leaves:
        person_leaves.discard(date_str)
    else:
        person_leaves.add(date_str)

    leaves = dict(state.leaves)
    leaves[personnel] = frozenset(person_leaves)
    return replace(state, leaves=leaves)


def add_reinforcement(
    state: ScheduleState,
    reinforcement_date: Union[date, str],
    personnel: str,
    station: str
) -> ScheduleState:
    """
    Append a one-day reinforcement for the date.

    Raises:
        ValueError: personnel or station is empty
        DuplicateReinforcementError: the person (case-insensitive) is already
            a reinforcement on that date
    """
    personnel = (personnel or "").strip()
    station = (station or "").strip()
    if not personnel or not station:
        raise ValueError("Personnel and station are required")

    date_str = to_date_str(reinforcement_date)
    day_reinforcements = state.reinforcements.get(date_str, ())
    if any(r.personnel.lower() == personnel.lower() for r in day_reinforcements):
        raise DuplicateReinforcementError(personnel, date_str)

    new_assignment = Assignment(
        personnel=personnel,
        shift=ShiftLabel.SABAH,
        station=station,
        is_reinforcement=True,
    )
    reinforcements = dict(state.reinforcements)
    reinforcements[date_str] = (*day_reinforcements, new_assignment)
    return replace(state, reinforcements=reinforcements)


def remove_reinforcement(
    state: ScheduleState,
    reinforcement_date: Union[date, str],
    personnel: str
) -> ScheduleState:
    """Remove a person's reinforcement on the date; drop the date if none remain"""
    date_str = to_date_str(reinforcement_date)
    remaining = tuple(r for r in state.reinforcements.get(date_str, ()) if r.personnel != personnel)

    reinforcements = dict(state.reinforcements)
    if remaining:
        reinforcements[date_str] = remaining
    else:
        reinforcements.pop(date_str, None)
    return replace(state, reinforcements=reinforcements)


def sync_personnel(
    state: ScheduleState,
    roster: Iterable[str],
    special_personnel: str = SPECIAL_PERSONNEL
) -> ScheduleState:
    """
    Replace the roster with the user directory's scheduled people.

    Leaves of anybody outside the new roster are dropped (the special
    personnel keeps theirs), as are reinforcements of people who left the
    roster; a date whose reinforcement list becomes empty is removed.
    Reinforcements of people who were never on the roster are transient
    staff and stay.
    """
    personnel = tuple(sorted(set(roster)))
    keep = set(personnel)
    removed = set(state.personnel) - keep

    leaves = {
        p: dates for p, dates in state.leaves.items()
        if p in keep or p == special_personnel
    }

    reinforcements = {}
    for date_str, day_reinforcements in state.reinforcements.items():
        remaining = tuple(r for r in day_reinforcements if r.personnel not in removed)
        if remaining:
            reinforcements[date_str] = remaining

    return ScheduleState(personnel=personnel, leaves=leaves, reinforcements=reinforcements)


def has_unsaved_changes(draft: ScheduleState, published: ScheduleState) -> bool:
    """True when the draft's roster, leaves or reinforcements differ from the published state"""
    return (
        draft.personnel != published.personnel
        or draft.leaves != published.leaves
        or draft.reinforcements != published.reinforcements
    )
