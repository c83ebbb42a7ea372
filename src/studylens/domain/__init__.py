# Domain Package
from .exceptions import EventStoreError, StudylensError
from .models import (
    AnswerEvent,
    CardOutcome,
    LearningGoal,
    Session,
    StudyMode,
    UserLevel,
    UserStats,
)
from .ports import EventStore

__all__ = [
    "AnswerEvent",
    "CardOutcome",
    "EventStore",
    "EventStoreError",
    "LearningGoal",
    "Session",
    "StudyMode",
    "StudylensError",
    "UserLevel",
    "UserStats",
]
