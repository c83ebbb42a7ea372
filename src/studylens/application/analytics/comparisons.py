"""Peer and historical comparisons."""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from studylens.application.analytics.history import completed_sessions
from studylens.application.utils.numeric import mean, population_variance, round_half_up
from studylens.application.utils.timeutil import ensure_utc
from studylens.domain import constants as c
from studylens.domain.models import Session, UserStats
from studylens.domain.report import (
    ComparisonAnalytics,
    HistoricalComparison,
    Milestone,
    PeerComparison,
)

logger = logging.getLogger(__name__)


def cards_per_minute(session: Session) -> float | None:
    minutes = session.duration_minutes
    if minutes <= 0:
        return None
    return session.cards_studied / minutes


def average_speed(sessions: Sequence[Session]) -> float:
    """Mean cards per minute over completed sessions with a positive duration."""
    speeds = [s for s in (cards_per_minute(x) for x in sessions) if s is not None]
    return mean(speeds)


class ComparisonAnalyzer:
    """
    Compares a user against a fixed synthetic peer baseline and against
    their own earlier sessions.
    """

    def __init__(
        self,
        peer_average_accuracy: float = c.PEER_AVERAGE_ACCURACY,
        peer_average_speed: float = c.PEER_AVERAGE_SPEED,
        history_window: int = c.HISTORY_WINDOW_SESSIONS,
    ):
        self.peer_average_accuracy = peer_average_accuracy
        self.peer_average_speed = peer_average_speed
        self.history_window = history_window

    def compare(
        self, stats: UserStats | None, sessions: Sequence[Session], now: datetime
    ) -> ComparisonAnalytics:
        completed = completed_sessions(sessions)
        return ComparisonAnalytics(
            peer=self.peer_comparison(stats, completed),
            historical=HistoricalComparison(
                accuracy_improvement=self.improvement(completed, lambda s: s.accuracy),
                speed_improvement=self.improvement(completed, cards_per_minute),
                consistency_score=self.consistency(completed),
                milestones=self.milestones(stats, now),
            ),
        )

    def peer_percentile(self, accuracy: float) -> int:
        """Synthetic percentile: the peer average maps to the 75th, clamped to [5, 95]."""
        if self.peer_average_accuracy <= 0:
            return c.PERCENTILE_FLOOR
        raw = round_half_up(accuracy / self.peer_average_accuracy * 50 + 25)
        return min(c.PERCENTILE_CEILING, max(c.PERCENTILE_FLOOR, raw))

    def peer_comparison(
        self, stats: UserStats | None, sessions: Sequence[Session]
    ) -> PeerComparison:
        accuracy = stats.average_accuracy if stats else 0.0
        speed = average_speed(sessions)

        strengths, improvements = [], []
        if accuracy > self.peer_average_accuracy:
            strengths.append("Accuracy")
        elif accuracy < self.peer_average_accuracy:
            improvements.append("Accuracy")
        if speed > self.peer_average_speed:
            strengths.append("Speed")
        elif 0 < speed < self.peer_average_speed:
            improvements.append("Speed")

        return PeerComparison(
            percentile=self.peer_percentile(accuracy),
            average_accuracy=self.peer_average_accuracy,
            average_speed=self.peer_average_speed,
            strength_areas=strengths,
            improvement_areas=improvements,
        )

    def improvement(
        self,
        sessions: Sequence[Session],
        metric: Callable[[Session], float | None],
    ) -> float:
        """
        Percentage change of `metric` between the earliest and latest sessions.

        Needs at least `history_window` sessions. Compares the first and last
        min(history_window, n // 2) sessions so the two windows never overlap.
        Returns 0 when there is not enough data or the early mean is 0.
        """
        if len(sessions) < self.history_window:
            return 0.0

        ordered = sorted(sessions, key=lambda s: ensure_utc(s.started_at))
        k = min(self.history_window, len(ordered) // 2)

        def window_mean(window: Sequence[Session]) -> float:
            return mean([v for v in (metric(s) for s in window) if v is not None])

        first_avg = window_mean(ordered[:k])
        last_avg = window_mean(ordered[-k:])
        if first_avg == 0:
            return 0.0
        return (last_avg - first_avg) / first_avg * 100

    def consistency(self, sessions: Sequence[Session]) -> float:
        """max(0, 1 - stddev) of per-session accuracy; 0 below five sessions."""
        if len(sessions) < c.MIN_CONSISTENCY_SESSIONS:
            return 0.0
        variance = population_variance([s.accuracy for s in sessions])
        return max(0.0, 1.0 - variance**0.5)

    def milestones(self, stats: UserStats | None, now: datetime) -> list[Milestone]:
        if stats is None:
            return []

        found = []
        if stats.current_streak >= c.MILESTONE_STREAK_DAYS:
            found.append(
                Milestone(
                    date=ensure_utc(now),
                    achievement="Week-long Study Streak",
                    metric="consistency",
                    value=stats.current_streak,
                )
            )
        if stats.total_sessions > 0 and stats.average_accuracy >= c.MILESTONE_ACCURACY:
            found.append(
                Milestone(
                    date=ensure_utc(now),
                    achievement="High Accuracy Achievement",
                    metric="accuracy",
                    value=round_half_up(stats.average_accuracy * 100),
                )
            )
        return found
