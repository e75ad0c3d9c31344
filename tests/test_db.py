"""Tests for database initialization, state snapshots and settings."""
import json
from datetime import date

from quiz_drill.db import (
    STATE_KEY, clear_state, export_state, get_connection, get_sample_size, get_setting,
    init_db, load_state, save_state, set_setting,
)
from quiz_drill.store import QuestionStore


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    assert {"app_state", "user_settings"}.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise


def test_load_state_without_snapshot_is_empty(tmp_db):
    init_db(tmp_db)
    store = load_state(tmp_db)
    assert store == QuestionStore()


def test_save_and_load_round_trip(tmp_db, sample_store):
    init_db(tmp_db)
    sample_store.record_answer("q1", False)
    sample_store.record_answer("q3", True)
    assert save_state(tmp_db, sample_store) is True
    assert load_state(tmp_db) == sample_store


def test_save_overwrites_previous_snapshot(tmp_db, sample_store):
    init_db(tmp_db)
    save_state(tmp_db, sample_store)
    sample_store.record_answer("q2", False)
    save_state(tmp_db, sample_store)
    conn = get_connection(tmp_db)
    rows = conn.execute("SELECT * FROM app_state").fetchall()
    conn.close()
    assert len(rows) == 1
    assert rows[0]["key"] == STATE_KEY
    assert load_state(tmp_db).mistake_ids == ["q2"]


def test_load_state_with_corrupt_snapshot_fails_soft(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO app_state (key, value) VALUES (?, ?)", (STATE_KEY, "{not json"))
    conn.commit()
    conn.close()
    assert load_state(tmp_db) == QuestionStore()


def test_load_state_with_wrong_shape_fails_soft(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO app_state (key, value) VALUES (?, ?)", (STATE_KEY, "[1, 2]"))
    conn.commit()
    conn.close()
    assert len(load_state(tmp_db)) == 0


def test_load_state_without_tables_fails_soft(tmp_db):
    # No init_db: the table does not exist yet
    assert load_state(tmp_db) == QuestionStore()


def test_save_state_failure_returns_false(tmp_db, sample_store):
    # No init_db: the insert fails
    assert save_state(tmp_db, sample_store) is False


def test_clear_state(tmp_db, sample_store):
    init_db(tmp_db)
    save_state(tmp_db, sample_store)
    clear_state(tmp_db)
    assert len(load_state(tmp_db)) == 0


def test_export_state_writes_dated_json(tmp_path, sample_store):
    sample_store.record_answer("q1", False)
    path = export_state(sample_store, str(tmp_path / "backups"))
    assert path.name == f"quiz-backup-{date.today().isoformat()}.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["mistakeSet"] == ["q1"]
    assert len(data["questions"]) == 3
    assert QuestionStore.from_snapshot(data) == sample_store


def test_settings(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "sample_size") is None
    assert get_sample_size(tmp_db) == 20
    set_setting(tmp_db, "sample_size", "5")
    set_setting(tmp_db, "sample_size", "10")
    assert get_sample_size(tmp_db) == 10


def test_sample_size_falls_back_on_bad_value(tmp_db):
    init_db(tmp_db)
    set_setting(tmp_db, "sample_size", "lots")
    assert get_sample_size(tmp_db) == 20


def test_clear_state_without_tables_returns_false(tmp_db):
    # No init_db: the delete fails and is reported, not raised
    assert clear_state(tmp_db) is False


def test_clear_state_returns_true(tmp_db):
    init_db(tmp_db)
    assert clear_state(tmp_db) is True
