"""
Delivery layer for quiz-runner.

Components:
- StateStore: SQLite persistence for the saved quiz text and settings
"""

from .state_store import QUIZ_TEXT_KEY, SETTINGS_KEY, StateStore

__all__ = [
    "StateStore",
    "QUIZ_TEXT_KEY",
    "SETTINGS_KEY",
]
