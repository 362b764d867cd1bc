"""
SQLite State Store for quiz-runner.

Provides portable persistence for:
- The last quiz text the user entered
- Quiz settings (mode, timer, sound)

Values are stored as JSON under stable keys in a single key-value table.

Database location: ~/.quiz-runner/state.db
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.quiz.session import QuizMode, QuizSettings

QUIZ_TEXT_KEY = "quiz-runner-text"
SETTINGS_KEY = "quiz-runner-settings"


class StateStore:
    """
    SQLite-backed key-value persistence.

    Handles:
    - get/set/delete of JSON values by key
    - Typed helpers for quiz text and settings
    """

    DEFAULT_DB_PATH = Path.home() / ".quiz-runner" / "state.db"

    def __init__(self, db_path: Path | None = None):
        """
        Initialize the state store.

        Args:
            db_path: Custom database path (defaults to ~/.quiz-runner/state.db)
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = None
        self._init_schema()

        logger.debug(f"StateStore initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.commit()

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a stored value.

        Args:
            key: Storage key
            default: Returned when the key is missing or unreadable
        """
        cursor = self.conn.cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        if row is None:
            return default

        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable value for key {key!r}")
            return default

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value, replacing any previous one."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """,
            (key, json.dumps(value)),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # =========================================================================
    # Quiz Text
    # =========================================================================

    def save_quiz_text(self, text: str) -> None:
        # Empty drafts are not saved
        if text:
            self.set(QUIZ_TEXT_KEY, text)

    def load_quiz_text(self) -> str | None:
        text = self.get(QUIZ_TEXT_KEY)
        return text if isinstance(text, str) else None

    def clear_quiz_text(self) -> None:
        self.delete(QUIZ_TEXT_KEY)

    # =========================================================================
    # Settings
    # =========================================================================

    def save_settings(self, settings: QuizSettings) -> None:
        self.set(SETTINGS_KEY, settings.model_dump(mode="json"))

    def load_settings(self, default_mode: QuizMode = QuizMode.TEST) -> QuizSettings:
        """Load saved settings, falling back to defaults if none or invalid."""
        data = self.get(SETTINGS_KEY)
        if data is None:
            return QuizSettings(mode=default_mode)

        try:
            return QuizSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid saved settings: {e}")
            return QuizSettings(mode=default_mode)
