"""
Performance metrics calculator.

Computes the accuracy / speed / retention / engagement block of a report.
This is a pure computation module with no I/O.
"""

from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone, tzinfo

from studylens.application.analytics.comparisons import cards_per_minute
from studylens.application.analytics.history import (
    card_accuracy,
    completed_sessions,
    latest_per_card,
    total_study_minutes,
)
from studylens.application.analytics.trends import SeriesMetric, TrendAnalyzer
from studylens.application.utils.numeric import mean, round_half_up
from studylens.application.utils.timeutil import days_between, local_date, local_hour
from studylens.domain import constants as c
from studylens.domain.models import CardOutcome, Session
from studylens.domain.report import (
    AccuracyMetrics,
    EngagementMetrics,
    HourActivity,
    PerformanceMetrics,
    RetentionMetrics,
    RetentionPoint,
    SetAccuracy,
    SpeedMetrics,
)


class MetricsCalculator:
    """
    Stateless and side-effect free.

    Uses the trend analyzer for the daily accuracy series so the metrics
    block and the trends block agree on calendar bucketing.
    """

    def __init__(self, tz: tzinfo = timezone.utc, trends: TrendAnalyzer | None = None):
        self.tz = tz
        self.trends = trends or TrendAnalyzer(tz=tz)

    def calculate(
        self,
        sessions: Sequence[Session],
        outcomes: Sequence[CardOutcome],
        now: datetime,
    ) -> PerformanceMetrics:
        cards = latest_per_card(outcomes)
        return PerformanceMetrics(
            accuracy=self.accuracy(sessions, cards, now),
            speed=self.speed(sessions, cards),
            retention=self.retention(cards, now),
            engagement=self.engagement(sessions),
        )

    def accuracy(
        self, sessions: Sequence[Session], cards: Sequence[CardOutcome], now: datetime
    ) -> AccuracyMetrics:
        daily = self.trends.daily_series(sessions, now, SeriesMetric.ACCURACY)
        return AccuracyMetrics(
            overall=mean([card_accuracy(o) for o in cards]),
            trend=[p.value for p in daily],
            by_set=self.accuracy_by_set(cards),
        )

    def accuracy_by_set(self, cards: Sequence[CardOutcome]) -> list[SetAccuracy]:
        totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
        for outcome in cards:
            totals[outcome.set_id][0] += min(outcome.correct_attempts, outcome.attempts)
            totals[outcome.set_id][1] += outcome.attempts
        return [
            SetAccuracy(set_id=set_id, accuracy=correct / total if total else 0.0)
            for set_id, (correct, total) in sorted(totals.items())
        ]

    def speed(self, sessions: Sequence[Session], cards: Sequence[CardOutcome]) -> SpeedMetrics:
        recent = completed_sessions(sessions)[-c.DAILY_WINDOW_DAYS :]
        trend = [v for v in (cards_per_minute(s) for s in recent) if v is not None]
        return SpeedMetrics(
            average_response_time=mean([o.average_response_time for o in cards]),
            trend=trend,
        )

    def retention(self, cards: Sequence[CardOutcome], now: datetime) -> RetentionMetrics:
        """
        Share of cards reviewed within each trailing window.

        A simple recency proxy: a card reviewed inside the window is counted
        as retained.
        """
        ages = [days_between(o.last_reviewed, now) for o in cards]
        total = max(len(ages), 1)

        def within(days: int) -> float:
            return sum(1 for age in ages if age < days) / total

        return RetentionMetrics(
            short_term=within(1),
            medium_term=within(7),
            long_term=within(30),
            forgetting_curve=[
                RetentionPoint(day=day, retention=within(day))
                for day in range(1, c.DAILY_WINDOW_DAYS + 1)
            ],
        )

    def streak_days(self, sessions: Sequence[Session]) -> int:
        """
        Consecutive calendar days with a completed session, counted back from
        the most recent such day.
        """
        days = sorted(
            {local_date(s.started_at, self.tz) for s in completed_sessions(sessions)},
            reverse=True,
        )
        if not days:
            return 0

        streak = 1
        for newer, older in zip(days, days[1:]):
            if newer - older != timedelta(days=1):
                break
            streak += 1
        return streak

    def engagement(self, sessions: Sequence[Session]) -> EngagementMetrics:
        hours = Counter(local_hour(s.started_at, self.tz) for s in sessions)
        return EngagementMetrics(
            study_sessions=len(sessions),
            total_study_time=round_half_up(total_study_minutes(sessions)),
            streak_days=self.streak_days(sessions),
            active_hours=[HourActivity(hour=h, sessions=hours.get(h, 0)) for h in range(24)],
        )

