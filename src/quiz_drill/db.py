"""Database initialization, state snapshots and user settings."""
import json
import logging
import os
import sqlite3
from datetime import date
from pathlib import Path

from quiz_drill.models import ParseError
from quiz_drill.store import QuestionStore

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.environ.get(
    "QUIZ_DRILL_DB", str(Path.home() / ".quiz_drill" / "quiz.db")
)

# Bump the suffix when the snapshot layout changes.
STATE_KEY = "quiz_state_v1"

SCHEMA = """
CREATE TABLE IF NOT EXISTS app_state (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    saved_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def save_state(db_path: str, store: QuestionStore) -> bool:
    """Overwrite the saved snapshot with the store's current state.

    Failures are logged and reported through the return value; the in-memory
    store stays authoritative for the running session.
    """
    payload = json.dumps(store.to_snapshot(), ensure_ascii=False)
    try:
        conn = get_connection(db_path)
        try:
            conn.execute(
                "INSERT INTO app_state (key, value, saved_at) VALUES (?, ?, datetime('now')) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, saved_at=excluded.saved_at",
                (STATE_KEY, payload),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error:
        logger.exception("Could not save quiz state to %s", db_path)
        return False
    return True


def load_state(db_path: str) -> QuestionStore:
    """Return the last saved store, or an empty one if nothing usable is saved."""
    try:
        conn = get_connection(db_path)
        try:
            row = conn.execute(
                "SELECT value FROM app_state WHERE key = ?", (STATE_KEY,)
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error:
        logger.exception("Could not read quiz state from %s", db_path)
        return QuestionStore()
    if row is None:
        return QuestionStore()
    try:
        return QuestionStore.from_snapshot(json.loads(row["value"]))
    except (json.JSONDecodeError, ParseError) as e:
        logger.warning("Ignoring unreadable quiz state: %s", e)
        return QuestionStore()


def clear_state(db_path: str) -> bool:
    """Delete the saved snapshot. Returns False (and logs) if the database refuses."""
    try:
        conn = get_connection(db_path)
        try:
            conn.execute("DELETE FROM app_state WHERE key = ?", (STATE_KEY,))
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error:
        logger.exception("Could not clear quiz state in %s", db_path)
        return False
    return True


def export_state(store: QuestionStore, dest_dir: str) -> Path:
    """Write the full state as a dated JSON backup and return its path."""
    path = Path(dest_dir) / f"quiz-backup-{date.today().isoformat()}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(store.to_snapshot(), ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_sample_size(db_path: str) -> int:
    try:
        return int(get_setting(db_path, "sample_size", "20"))
    except ValueError:
        return 20
