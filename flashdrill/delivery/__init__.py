"""
Delivery: persistence, scheduling and the terminal interface.

Components:
- StateStore: SQLite key-value persistence
- CardRepository: user / built-in card partitions
- LessonLibrary: user text commits and built-in lesson opt-in
- ScoreScheduler: deck ordering, score update, re-insertion
- ReviewSession: per-session deck and review state machine
"""

from .card_store import DEFAULT_LESSON_TEXT, CardRepository, LessonLibrary, Origin
from .scheduler import SchedulerConfig, ScoreScheduler, apply_rating, build_deck, round2
from .session import ReviewPhase, ReviewSession, rating_band, rating_breakdown
from .state_store import MemoryStateStore, SQLiteStateStore, StateStore

__all__ = [
    # Persistence
    "StateStore",
    "MemoryStateStore",
    "SQLiteStateStore",
    # Cards
    "CardRepository",
    "LessonLibrary",
    "Origin",
    "DEFAULT_LESSON_TEXT",
    # Scheduling
    "ScoreScheduler",
    "SchedulerConfig",
    "build_deck",
    "apply_rating",
    "round2",
    # Sessions
    "ReviewSession",
    "ReviewPhase",
    "rating_breakdown",
    "rating_band",
]
