"""
Tests for schedule state serialization and the stored states.
"""

import json
import os
import tempfile

import pytest

from data_loader import (
    apply_settings, deserialize_state, generate_sample_data, load_personnel,
    load_schedule_config, load_schedule_state, save_schedule_state,
    save_settings, serialize_state, sync_roster_in_database
)
from db_init import create_database_schema, initialize_database
from entities import DEFAULT_CONFIG, INITIAL_PERSONNEL, StationOrderPolicy
from schedule_state import add_reinforcement, empty_state, sync_personnel, toggle_leave


def test_round_trip_sample_state():
    state = generate_sample_data()
    payload = json.loads(json.dumps(serialize_state(state)))
    assert deserialize_state(payload) == state


def test_round_trip_keeps_empty_leave_set():
    state = toggle_leave(sync_personnel(empty_state(), ["A"]), "2025-12-03", "A")
    state = toggle_leave(state, "2025-12-03", "A")
    assert state.leaves == {"A": frozenset()}

    restored = deserialize_state(serialize_state(state))
    assert restored.leaves == {"A": frozenset()}


def test_serialized_layout():
    state = add_reinforcement(sync_personnel(empty_state(), ["A"]), "2025-12-03", "B", "Board1")
    state = toggle_leave(state, "2025-12-05", "A")
    state = toggle_leave(state, "2025-12-04", "A")

    assert serialize_state(state) == {
        'version': 1,
        'personnel': ["A"],
        'leaves': [["A", ["2025-12-04", "2025-12-05"]]],
        'reinforcements': [
            ["2025-12-03", [{
                'personnel': "B",
                'shift': "SABAH",
                'station': "Board1",
                'isReinforcement': True,
            }]],
        ],
    }


def test_mappings_keep_insertion_order():
    state = sync_personnel(empty_state(), ["A", "B"])
    state = add_reinforcement(state, "2025-12-05", "C", "Board1")
    state = add_reinforcement(state, "2025-12-03", "D", "Board2")
    state = toggle_leave(state, "2025-12-04", "B")
    state = toggle_leave(state, "2025-12-04", "A")

    payload = serialize_state(state)
    assert [date_str for date_str, _ in payload['reinforcements']] == ["2025-12-05", "2025-12-03"]
    assert [personnel for personnel, _ in payload['leaves']] == ["B", "A"]

    restored = deserialize_state(payload)
    assert list(restored.reinforcements) == ["2025-12-05", "2025-12-03"]
    assert list(restored.leaves) == ["B", "A"]


def test_none_payload_is_empty_state():
    assert deserialize_state(None) == empty_state()


def test_unversioned_payload_is_read():
    payload = {'personnel': ["A"], 'leaves': [["A", ["2025-12-03"]]], 'reinforcements': []}
    state = deserialize_state(payload)
    assert state.personnel == ("A",)
    assert state.is_on_leave("A", "2025-12-03")


def test_unknown_version_rejected():
    with pytest.raises(ValueError):
        deserialize_state({'version': 99, 'personnel': []})


class TestStoredStates:
    """Stored states, personnel directory and settings in SQLite"""

    def setup_method(self):
        self.tmpdir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmpdir, "test_vardiya.db")
        initialize_database(self.db_path, with_sample_data=True)

    def teardown_method(self):
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        os.rmdir(self.tmpdir)

    def test_initialized_roster(self):
        roster = sorted(INITIAL_PERSONNEL)
        assert load_personnel(self.db_path) == roster
        for name in ("published", "draft"):
            assert list(load_schedule_state(self.db_path, name).personnel) == roster

    def test_save_and_load_state(self):
        state = generate_sample_data()
        save_schedule_state(self.db_path, "draft", state)
        assert load_schedule_state(self.db_path, "draft") == state
        assert load_schedule_state(self.db_path, "published") != state

    def test_unknown_state_name_rejected(self):
        with pytest.raises(ValueError):
            save_schedule_state(self.db_path, "archive", empty_state())

    def test_roster_sync_keeps_special_leaves(self):
        state = toggle_leave(load_schedule_state(self.db_path, "draft"), "2026-01-05", "Volkan")
        state = toggle_leave(state, "2026-01-05", "Emir")
        save_schedule_state(self.db_path, "draft", state)

        import sqlite3
        conn = sqlite3.connect(self.db_path)
        conn.execute("UPDATE Personnel SET IncludeInSchedule = 0 WHERE Name = 'Emir'")
        conn.commit()
        conn.close()

        roster = sync_roster_in_database(self.db_path)
        draft = load_schedule_state(self.db_path, "draft")

        assert "Emir" not in roster
        assert "Emir" not in draft.personnel
        assert "Emir" not in draft.leaves
        assert draft.is_on_leave("Volkan", "2026-01-05")
        # The published state keeps its roster until the draft is published
        assert "Emir" in load_schedule_state(self.db_path, "published").personnel

    def test_roster_sync_keeps_transient_reinforcements(self):
        state = add_reinforcement(load_schedule_state(self.db_path, "draft"), "2025-12-03", "Misafir", "Planlama")
        save_schedule_state(self.db_path, "draft", state)
        save_schedule_state(self.db_path, "published", state)

        import sqlite3
        conn = sqlite3.connect(self.db_path)
        conn.execute("INSERT INTO Personnel (Name, IncludeInSchedule) VALUES ('Yeni', 1)")
        conn.commit()
        conn.close()

        sync_roster_in_database(self.db_path)
        draft = load_schedule_state(self.db_path, "draft")
        published = load_schedule_state(self.db_path, "published")

        assert "Yeni" in draft.personnel
        assert [r.personnel for r in draft.reinforcements["2025-12-03"]] == ["Misafir"]
        assert published == state

    def test_settings_override_config(self):
        assert load_schedule_config(self.db_path) == DEFAULT_CONFIG

        save_settings(self.db_path, {
            'publicHolidays': ["2026-01-01"],
            'stationOrder': "average_load",
        })
        config = load_schedule_config(self.db_path)

        assert config.public_holidays == frozenset({"2026-01-01"})
        assert config.station_order == StationOrderPolicy.AVERAGE_LOAD
        assert config.start_date == DEFAULT_CONFIG.start_date

    def test_invalid_settings_rejected(self):
        with pytest.raises(ValueError):
            save_settings(self.db_path, {'startDate': "01.12.2025"})
        with pytest.raises(ValueError):
            save_settings(self.db_path, {'stationOrder': "random"})
        with pytest.raises(ValueError):
            save_settings(self.db_path, {'colour': "blue"})
        assert load_schedule_config(self.db_path) == DEFAULT_CONFIG


def test_apply_settings_start_date():
    config = apply_settings(DEFAULT_CONFIG, {'startDate': "2026-12-01"})
    assert config.start_date.isoformat() == "2026-12-01"
    assert config.cycle_start_date == config.start_date


def test_schema_is_idempotent():
    tmpdir = tempfile.mkdtemp()
    db_path = os.path.join(tmpdir, "schema.db")
    try:
        create_database_schema(db_path)
        create_database_schema(db_path)
        assert load_personnel(db_path) == []
        assert load_schedule_state(db_path, "published") == empty_state()
    finally:
        os.remove(db_path)
        os.rmdir(tmpdir)
