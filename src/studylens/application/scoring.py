"""
Scoring engine: points, levels, and session summaries.

This is a pure computation module with no I/O. The only record it produces
for persistence is the UserStats returned by update_user_stats; saving it is
the caller's job.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from studylens.application.id_service import generate_id
from studylens.application.utils.numeric import round_half_up
from studylens.application.utils.timeutil import utcnow
from studylens.domain import constants as c
from studylens.domain.models import Session, StudyMode, UserLevel, UserStats

logger = logging.getLogger(__name__)


class Answer(Protocol):
    """Anything that looks like an answer: AnswerEvent, CardOutcome, ..."""

    is_correct: bool
    response_seconds: float


@dataclass(frozen=True)
class ScoreConfig:
    """Point values. Time bands are upper-exclusive latency limits in seconds."""

    correct_answer: int = c.CORRECT_ANSWER_POINTS
    incorrect_answer: int = c.INCORRECT_ANSWER_POINTS
    fast_seconds: float = c.FAST_ANSWER_SECONDS
    normal_seconds: float = c.NORMAL_ANSWER_SECONDS
    slow_seconds: float = c.SLOW_ANSWER_SECONDS
    fast_bonus: int = c.FAST_TIME_BONUS
    normal_bonus: int = c.NORMAL_TIME_BONUS
    slow_bonus: int = c.SLOW_TIME_BONUS
    timeout_bonus: int = c.TIMEOUT_TIME_BONUS
    streak_every: int = c.STREAK_BONUS_EVERY
    streak_bonus: int = c.STREAK_BONUS_POINTS


@dataclass(frozen=True)
class LevelThresholds:
    """
    Inclusive upper bounds of each tier. Expert is everything above advanced.

    A score equal to a bound belongs to the lower tier: 100 is Beginner,
    101 is Intermediate.
    """

    beginner: int = c.LEVEL_BEGINNER_MAX
    intermediate: int = c.LEVEL_INTERMEDIATE_MAX
    advanced: int = c.LEVEL_ADVANCED_MAX

    def __post_init__(self):
        if not 0 < self.beginner < self.intermediate < self.advanced:
            raise ValueError(
                "Level thresholds must be positive and strictly ascending: "
                f"{self.beginner}, {self.intermediate}, {self.advanced}"
            )


@dataclass(frozen=True)
class AnswerScore:
    base: int
    time_bonus: int
    streak_bonus: int
    total: int


@dataclass(frozen=True)
class SessionScore:
    total_score: int
    accuracy: float
    correct_answers: int
    total_answers: int
    average_time: float
    max_streak: int
    time_bonus: int
    streak_bonus: int
    total_time: float


@dataclass(frozen=True)
class LevelProgress:
    current_level: UserLevel
    next_level: UserLevel | None
    progress_percent: int  # 0-100
    points_to_next: int


@dataclass(frozen=True)
class SessionResult:
    session: Session
    score: int
    accuracy: float
    streak: int
    level_before: UserLevel
    level_after: UserLevel
    points_earned: int
    time_bonus: int
    streak_bonus: int

    @property
    def leveled_up(self) -> bool:
        return self.level_after != self.level_before


_LEVEL_ORDER = [
    UserLevel.BEGINNER,
    UserLevel.INTERMEDIATE,
    UserLevel.ADVANCED,
    UserLevel.EXPERT,
]


class ScoringEngine:
    """
    Converts answer events into points, session summaries and levels.

    Stateless and side-effect free; configuration is fixed at construction.
    """

    def __init__(
        self,
        config: ScoreConfig | None = None,
        thresholds: LevelThresholds | None = None,
    ):
        self.config = config or ScoreConfig()
        self.thresholds = thresholds or LevelThresholds()

    # ------------------------------------------------------------------
    # Answers and sessions
    # ------------------------------------------------------------------

    def score_answer(
        self, is_correct: bool, response_seconds: float, prior_streak: int = 0
    ) -> AnswerScore:
        """
        Score one answer.

        prior_streak is the number of consecutive correct answers before this
        one. The streak bonus fires when this answer brings the running
        streak to a positive multiple of config.streak_every.
        """
        cfg = self.config
        base = cfg.correct_answer if is_correct else cfg.incorrect_answer
        time_bonus = self._time_bonus(response_seconds) if is_correct else 0

        streak_bonus = 0
        if is_correct and cfg.streak_every > 0:
            running = max(0, prior_streak) + 1
            if running % cfg.streak_every == 0:
                streak_bonus = cfg.streak_bonus

        total = max(0, base + time_bonus + streak_bonus)
        return AnswerScore(
            base=base, time_bonus=time_bonus, streak_bonus=streak_bonus, total=total
        )

    def _time_bonus(self, response_seconds: float) -> int:
        cfg = self.config
        if response_seconds < cfg.fast_seconds:
            return cfg.fast_bonus
        if response_seconds < cfg.normal_seconds:
            return cfg.normal_bonus
        if response_seconds < cfg.slow_seconds:
            return cfg.slow_bonus
        return cfg.timeout_bonus

    def score_session(self, answers: Iterable[Answer]) -> SessionScore:
        """
        Replay score_answer over the answers in order.

        An empty sequence scores zero everywhere; there is no division by zero.
        """
        total_score = 0
        correct = 0
        count = 0
        total_time = 0.0
        streak = 0
        max_streak = 0
        time_bonus = 0
        streak_bonus = 0

        for answer in answers:
            latency = max(0.0, float(answer.response_seconds or 0.0))
            result = self.score_answer(answer.is_correct, latency, streak)

            total_score += result.total
            time_bonus += result.time_bonus
            streak_bonus += result.streak_bonus
            total_time += latency
            count += 1

            if answer.is_correct:
                correct += 1
                streak += 1
                max_streak = max(max_streak, streak)
            else:
                streak = 0

        return SessionScore(
            total_score=total_score,
            accuracy=correct / count if count else 0.0,
            correct_answers=correct,
            total_answers=count,
            average_time=total_time / count if count else 0.0,
            max_streak=max_streak,
            time_bonus=time_bonus,
            streak_bonus=streak_bonus,
            total_time=total_time,
        )

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def _bounds(self) -> list[int]:
        t = self.thresholds
        return [t.beginner, t.intermediate, t.advanced]

    def user_level(self, total_score: int) -> UserLevel:
        for level, upper in zip(_LEVEL_ORDER, self._bounds()):
            if total_score <= upper:
                return level
        return UserLevel.EXPERT

    def level_progress(self, total_score: int) -> LevelProgress:
        """
        Linear progress from the current tier's lower bound to its upper bound.

        Expert has no next level and always reports 100% with 0 points to go.
        """
        current = self.user_level(total_score)
        index = _LEVEL_ORDER.index(current)
        if current == UserLevel.EXPERT:
            return LevelProgress(
                current_level=current,
                next_level=None,
                progress_percent=100,
                points_to_next=0,
            )

        bounds = [0] + self._bounds()
        lower, upper = bounds[index], bounds[index + 1]
        percent = round_half_up((total_score - lower) / (upper - lower) * 100)

        return LevelProgress(
            current_level=current,
            next_level=_LEVEL_ORDER[index + 1],
            progress_percent=min(100, max(0, percent)),
            points_to_next=max(0, upper - total_score),
        )

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def create_session(
        self,
        set_id: str,
        mode: StudyMode,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> Session:
        return Session(
            id=generate_id("session"),
            set_id=set_id,
            mode=mode,
            started_at=now or utcnow(),
            user_id=user_id,
        )

    def complete_session(
        self,
        session: Session,
        answers: Sequence[Answer],
        current_stats: UserStats | None = None,
        now: datetime | None = None,
    ) -> SessionResult:
        """Score the session and compare the user's level before and after it."""
        summary = self.score_session(answers)

        completed = replace(
            session,
            ended_at=session.ended_at or now or utcnow(),
            cards_studied=summary.total_answers,
            accuracy=summary.accuracy,
            score=summary.total_score,
        )

        score_before = current_stats.total_score if current_stats else 0
        level_before = self.user_level(score_before)
        level_after = self.user_level(score_before + summary.total_score)
        if level_after != level_before:
            logger.debug(
                f"Session {session.id} moves level {level_before.value} -> {level_after.value}"
            )

        return SessionResult(
            session=completed,
            score=summary.total_score,
            accuracy=summary.accuracy,
            streak=summary.max_streak,
            level_before=level_before,
            level_after=level_after,
            points_earned=summary.total_score,
            time_bonus=summary.time_bonus,
            streak_bonus=summary.streak_bonus,
        )

    def update_user_stats(
        self,
        current_stats: UserStats | None,
        result: SessionResult,
        now: datetime | None = None,
    ) -> UserStats:
        """
        Fold one completed session into the user's lifetime stats.

        Creates a fresh record on the first session. Otherwise recomputes the
        running averages and adopts the new level.

        current_streak counts consecutive sessions with accuracy above
        STREAK_SESSION_ACCURACY and resets to 0 on any other session.
        best_streak keeps the longest answer streak seen in a single session.
        """
        now = now or utcnow()
        session = result.session
        qualifies = result.accuracy > c.STREAK_SESSION_ACCURACY

        if current_stats is None:
            return UserStats(
                id=generate_id("stats"),
                user_id=session.user_id or "default",
                created_at=now,
                updated_at=now,
                total_score=result.points_earned,
                total_sessions=1,
                average_score=float(result.score),
                average_accuracy=result.accuracy,
                total_cards_studied=session.cards_studied,
                current_streak=1 if qualifies else 0,
                best_streak=result.streak,
                level=result.level_after,
            )

        sessions = current_stats.total_sessions + 1
        total_score = current_stats.total_score + result.points_earned
        average_accuracy = (
            current_stats.average_accuracy * current_stats.total_sessions + result.accuracy
        ) / sessions

        return replace(
            current_stats,
            updated_at=now,
            total_score=total_score,
            total_sessions=sessions,
            average_score=round(total_score / sessions, 2),
            average_accuracy=average_accuracy,
            total_cards_studied=current_stats.total_cards_studied + session.cards_studied,
            current_streak=current_stats.current_streak + 1 if qualifies else 0,
            best_streak=max(current_stats.best_streak, result.streak),
            level=result.level_after,
        )
