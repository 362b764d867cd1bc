"""
Unit tests for the SQLite state store.

Uses a temporary database per test; never touches ~/.quiz-runner.
"""

import sqlite3

import pytest

from src.delivery.state_store import QUIZ_TEXT_KEY, SETTINGS_KEY, StateStore
from src.quiz import QuizMode, QuizSettings


@pytest.fixture
def store(tmp_path):
    store = StateStore(tmp_path / "nested" / "state.db")
    yield store
    store.close()


class TestKeyValue:

    def test_creates_parent_directory(self, tmp_path, store):
        assert (tmp_path / "nested" / "state.db").exists()

    def test_missing_key_returns_default(self, store):
        assert store.get("missing") is None
        assert store.get("missing", default=42) == 42

    def test_set_and_get_json_values(self, store):
        store.set("numbers", [1, 2, 3])
        store.set("mapping", {"a": True})

        assert store.get("numbers") == [1, 2, 3]
        assert store.get("mapping") == {"a": True}

    def test_set_replaces_value(self, store):
        store.set("key", "first")
        store.set("key", "second")
        assert store.get("key") == "second"

    def test_delete(self, store):
        store.set("key", "value")
        store.delete("key")
        assert store.get("key") is None

    def test_persists_across_instances(self, tmp_path, store):
        store.set("key", "value")
        store.close()

        reopened = StateStore(tmp_path / "nested" / "state.db")
        assert reopened.get("key") == "value"
        reopened.close()

    def test_unreadable_value_returns_default(self, tmp_path, store):
        conn = sqlite3.connect(str(tmp_path / "nested" / "state.db"))
        conn.execute("INSERT INTO kv_store (key, value) VALUES ('broken', 'not json')")
        conn.commit()
        conn.close()

        assert store.get("broken", default="fallback") == "fallback"


class TestQuizText:

    def test_round_trip(self, store):
        store.save_quiz_text("Question 1 of 1\nQ\nAnswer: True")
        assert store.load_quiz_text() == "Question 1 of 1\nQ\nAnswer: True"
        assert store.get(QUIZ_TEXT_KEY) == store.load_quiz_text()

    def test_empty_text_not_saved(self, store):
        store.save_quiz_text("saved")
        store.save_quiz_text("")
        assert store.load_quiz_text() == "saved"

    def test_clear(self, store):
        store.save_quiz_text("saved")
        store.clear_quiz_text()
        assert store.load_quiz_text() is None

    def test_non_string_value_ignored(self, store):
        store.set(QUIZ_TEXT_KEY, 123)
        assert store.load_quiz_text() is None


class TestSettings:

    def test_defaults_when_missing(self, store):
        assert store.load_settings() == QuizSettings()
        assert store.load_settings(QuizMode.PRACTICE).mode == QuizMode.PRACTICE

    def test_round_trip(self, store):
        settings = QuizSettings(mode=QuizMode.PRACTICE, timer_enabled=True, timer_minutes=25, sound_enabled=False)
        store.save_settings(settings)

        assert store.get(SETTINGS_KEY)["mode"] == "practice"
        assert store.load_settings() == settings

    def test_invalid_saved_settings_fall_back(self, store):
        store.set(SETTINGS_KEY, {"mode": "exam", "timer_minutes": -5})
        assert store.load_settings() == QuizSettings()
