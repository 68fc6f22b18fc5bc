"""
Tests for state changes: leave toggling, roster sync and the
draft/published comparison.
"""

from datetime import date

from entities import Assignment, ShiftLabel
from schedule_state import (
    add_reinforcement, empty_state, has_unsaved_changes, sync_personnel, toggle_leave
)


def test_toggle_leave_adds_and_removes():
    state = sync_personnel(empty_state(), ["A"])

    state = toggle_leave(state, date(2025, 12, 3), "A")
    assert state.is_on_leave("A", "2025-12-03")

    state = toggle_leave(state, "2025-12-03", "A")
    assert not state.is_on_leave("A", "2025-12-03")
    assert "A" in state.leaves


def test_toggle_leave_returns_new_state():
    original = sync_personnel(empty_state(), ["A"])
    changed = toggle_leave(original, "2025-12-03", "A")
    assert original.leaves == {}
    assert changed is not original


def test_sync_personnel_sorts_and_prunes_removed_people():
    state = sync_personnel(empty_state(), ["C", "A", "B"])
    state = toggle_leave(state, "2025-12-03", "B")
    state = add_reinforcement(state, "2025-12-03", "B", "Board1")
    state = add_reinforcement(state, "2025-12-04", "B", "Board1")
    state = add_reinforcement(state, "2025-12-04", "A", "Board2")
    state = add_reinforcement(state, "2025-12-05", "Misafir", "Board3")

    synced = sync_personnel(state, ["C", "A", "A"])

    assert synced.personnel == ("A", "C")
    assert "B" not in synced.leaves
    assert "2025-12-03" not in synced.reinforcements
    assert synced.reinforcements["2025-12-04"] == (
        Assignment("A", ShiftLabel.SABAH, "Board2", is_reinforcement=True),
    )
    # Reinforcements of people who were never on the roster stay
    assert synced.reinforcements["2025-12-05"] == (
        Assignment("Misafir", ShiftLabel.SABAH, "Board3", is_reinforcement=True),
    )


def test_sync_personnel_keeps_special_leaves():
    state = toggle_leave(sync_personnel(empty_state(), ["A"]), "2025-12-03", "Volkan")
    synced = sync_personnel(state, ["B"])
    assert synced.is_on_leave("Volkan", "2025-12-03")


def test_unsaved_changes():
    published = sync_personnel(empty_state(), ["A", "B"])
    assert not has_unsaved_changes(published, published)

    draft = toggle_leave(published, "2025-12-03", "A")
    assert has_unsaved_changes(draft, published)

    # Toggling back leaves an empty entry, which still differs
    draft = toggle_leave(draft, "2025-12-03", "A")
    assert has_unsaved_changes(draft, published)

    draft = add_reinforcement(published, "2025-12-03", "C", "Board1")
    assert has_unsaved_changes(draft, published)


def test_roster_change_is_an_unsaved_change():
    published = sync_personnel(empty_state(), ["A", "B"])
    draft = sync_personnel(published, ["A", "B", "C"])
    assert has_unsaved_changes(draft, published)
