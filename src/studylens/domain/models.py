"""
Domain models for study history.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class StudyMode(str, Enum):
    """Study activity a session was run in."""

    FLASHCARD = "FLASHCARD"
    TEST = "TEST"
    MATCH = "MATCH"
    REVIEW = "REVIEW"


class UserLevel(str, Enum):
    """
    Level tiers derived from a user's lifetime score.

    Ordered from lowest to highest; see ScoringEngine.user_level.
    """

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class GoalType(str, Enum):
    ACCURACY = "accuracy"
    SPEED = "speed"
    MASTERY = "mastery"
    STREAK = "streak"
    CUSTOM = "custom"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    FAILED = "failed"


@dataclass(frozen=True)
class Session:
    """
    One study encounter.

    Attributes:
        id: Session identifier.
        set_id: The study set that was studied.
        mode: Study mode the session ran in.
        started_at: When the session began.
        ended_at: When it completed; None while in progress.
        cards_studied: Number of cards answered.
        accuracy: Ratio of correct answers in [0, 1].
        score: Points awarded at completion.
        user_id: Owning user, if known.
    """

    id: str
    set_id: str
    mode: StudyMode
    started_at: datetime
    ended_at: datetime | None = None
    cards_studied: int = 0
    accuracy: float = 0.0
    score: int = 0
    user_id: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None

    @property
    def duration_minutes(self) -> float:
        """Length of a completed session in minutes (0 while in progress)."""
        if self.ended_at is None:
            return 0.0
        return max(0.0, (self.ended_at - self.started_at).total_seconds() / 60.0)


@dataclass(frozen=True)
class AnswerEvent:
    """A single answer given during a session, in the order it was given."""

    card_id: str
    is_correct: bool
    response_seconds: float = 0.0


@dataclass(frozen=True)
class CardOutcome:
    """
    Historical record of a card being answered inside a session.

    Counts are cumulative over the card's lifetime, so the most recent
    record for a card carries its current totals.

    Attributes:
        card_id: The card that was answered.
        set_id: The study set owning the card.
        session_id: The session the answer was given in.
        is_correct: Whether this answer was correct.
        response_seconds: Latency of this answer.
        attempts: Cumulative attempt count.
        correct_attempts: Cumulative correct attempt count.
        last_reviewed: When this answer was given.
        average_response_time: Rolling mean response time in seconds.
    """

    card_id: str
    set_id: str
    last_reviewed: datetime
    session_id: str | None = None
    is_correct: bool = False
    response_seconds: float = 0.0
    attempts: int = 0
    correct_attempts: int = 0
    average_response_time: float = 0.0

    @property
    def accuracy(self) -> float | None:
        """Correct / attempts, or None when the card was never attempted."""
        if self.attempts <= 0:
            return None
        return min(1.0, max(0, self.correct_attempts) / self.attempts)


@dataclass(frozen=True)
class UserStats:
    """Lifetime performance aggregate for one user."""

    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    total_score: int = 0
    total_sessions: int = 0
    average_score: float = 0.0
    average_accuracy: float = 0.0
    total_cards_studied: int = 0
    current_streak: int = 0  # consecutive sessions above STREAK_SESSION_ACCURACY
    best_streak: int = 0  # longest run of correct answers in any session
    level: UserLevel = UserLevel.BEGINNER


@dataclass(frozen=True)
class GoalTarget:
    value: float
    unit: str
    timeframe: str = "ongoing"


@dataclass(frozen=True)
class GoalProgress:
    value: float = 0.0
    progress: float = 0.0  # 0-100


@dataclass(frozen=True)
class LearningGoal:
    """A user-defined learning goal. Managed outside the analytics engines."""

    id: str
    title: str
    description: str
    type: GoalType
    target: GoalTarget
    created_at: datetime
    current: GoalProgress = field(default_factory=GoalProgress)
    status: GoalStatus = GoalStatus.ACTIVE
    deadline: datetime | None = None
    reward: str | None = None
    completed_at: datetime | None = None
