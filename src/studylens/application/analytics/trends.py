"""
Pattern and trend analysis over session history.

Builds gap-filled calendar series (one point per day or week, zero when
nothing happened) and classifies them as improving, declining or stable.
Pure computation, no I/O.
"""

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum

from studylens.application.analytics.history import completed_sessions
from studylens.application.id_service import generate_id
from studylens.application.utils.numeric import mean, population_stdev
from studylens.application.utils.timeutil import local_date, local_hour, to_local
from studylens.domain import constants as c
from studylens.domain.models import Session
from studylens.domain.report import (
    LearningTrend,
    PatternEffectiveness,
    PatternProfile,
    StudyPattern,
    TrendDirection,
    TrendPeriod,
    TrendPoint,
)

logger = logging.getLogger(__name__)


class SeriesMetric(str, Enum):
    ACCURACY = "accuracy"
    CARDS_STUDIED = "cards_studied"
    STUDY_SESSIONS = "study_sessions"


PATTERN_SUGGESTIONS = [
    "Continue studying during your peak hours for best results",
    "Consider shorter, more frequent sessions during off-peak times",
]


def classify_trend(
    values: Sequence[float], threshold: float = c.TREND_CHANGE_THRESHOLD
) -> TrendDirection:
    """
    Compare the mean of the second half of a series against the first half.

    A relative change above `threshold` is improving, below -threshold is
    declining, anything else (including fewer than two points) is stable.
    When the first half averages zero, any positive second half counts as
    improving.
    """
    if len(values) < 2:
        return TrendDirection.STABLE

    half = len(values) // 2
    first_avg = mean(values[:half])
    second_avg = mean(values[half:])

    if first_avg == 0:
        return TrendDirection.IMPROVING if second_avg > 0 else TrendDirection.STABLE

    change = (second_avg - first_avg) / first_avg
    if change > threshold:
        return TrendDirection.IMPROVING
    if change < -threshold:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def trend_significance(values: Sequence[float]) -> float:
    """
    Consistency proxy: max(0, 1 - stddev / mean) over the whole series.

    Descriptive only, this is not a statistical test.
    """
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    if avg <= 0:
        return 0.0
    return max(0.0, 1.0 - population_stdev(values) / avg)


def _with_changes(points: list[tuple[date, float]]) -> list[TrendPoint]:
    series: list[TrendPoint] = []
    previous: float | None = None
    for day, value in points:
        change = None if previous is None else value - previous
        series.append(TrendPoint(date=day.isoformat(), value=value, change=change))
        previous = value
    return series


class TrendAnalyzer:
    """
    Derives daily/weekly series and study-time patterns from sessions.

    Calendar buckets (days, weeks, hours) are computed in `tz`.
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        change_threshold: float = c.TREND_CHANGE_THRESHOLD,
        daily_days: int = c.DAILY_WINDOW_DAYS,
        weekly_weeks: int = c.WEEKLY_WINDOW_WEEKS,
    ):
        self.tz = tz
        self.change_threshold = change_threshold
        self.daily_days = daily_days
        self.weekly_weeks = weekly_weeks

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def daily_series(
        self,
        sessions: Sequence[Session],
        now: datetime,
        metric: SeriesMetric = SeriesMetric.ACCURACY,
        days: int | None = None,
    ) -> list[TrendPoint]:
        """
        One point per calendar day, oldest first, ending today.

        Accuracy is the mean accuracy of the day's completed sessions; cards
        studied and session counts are totals. Empty days are 0.
        """
        days = days if days is not None else self.daily_days
        today = local_date(now, self.tz)

        by_day: dict[date, list[Session]] = {}
        for session in sessions:
            by_day.setdefault(local_date(session.started_at, self.tz), []).append(session)

        aggregate = self._aggregator(metric)
        points = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            points.append((day, aggregate(by_day.get(day, []))))
        return _with_changes(points)

    def weekly_series(
        self,
        sessions: Sequence[Session],
        now: datetime,
        metric: SeriesMetric = SeriesMetric.STUDY_SESSIONS,
        weeks: int | None = None,
    ) -> list[TrendPoint]:
        """
        One point per trailing 7-day window, oldest first.

        The newest window ends today; each point is labelled with the first
        day of its window.
        """
        weeks = weeks if weeks is not None else self.weekly_weeks
        today = local_date(now, self.tz)
        aggregate = self._aggregator(metric)

        points = []
        for k in range(weeks - 1, -1, -1):
            end = today - timedelta(days=7 * k)
            start = end - timedelta(days=6)
            in_window = [
                s for s in sessions if start <= local_date(s.started_at, self.tz) <= end
            ]
            points.append((start, aggregate(in_window)))
        return _with_changes(points)

    def _aggregator(self, metric: SeriesMetric) -> Callable[[list[Session]], float]:
        if metric == SeriesMetric.ACCURACY:
            return lambda group: mean([s.accuracy for s in completed_sessions(group)])
        if metric == SeriesMetric.CARDS_STUDIED:
            return lambda group: float(sum(s.cards_studied for s in completed_sessions(group)))
        if metric == SeriesMetric.STUDY_SESSIONS:
            return lambda group: float(len(group))
        raise ValueError(f"Unsupported series metric: {metric}")

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    def build_trend(
        self, period: TrendPeriod, metric: SeriesMetric, data: list[TrendPoint]
    ) -> LearningTrend:
        values = [p.value for p in data]
        return LearningTrend(
            period=period,
            metric=metric.value,
            data=data,
            trend=classify_trend(values, self.change_threshold),
            significance=trend_significance(values),
        )

    def calculate_trends(
        self, sessions: Sequence[Session], now: datetime
    ) -> list[LearningTrend]:
        trends: list[LearningTrend] = []

        for metric in (SeriesMetric.ACCURACY, SeriesMetric.CARDS_STUDIED):
            daily = self.daily_series(sessions, now, metric)
            if len(daily) >= c.MIN_DAILY_POINTS:
                trends.append(self.build_trend(TrendPeriod.DAILY, metric, daily))

        weekly = self.weekly_series(sessions, now, SeriesMetric.STUDY_SESSIONS)
        if len(weekly) >= c.MIN_WEEKLY_POINTS:
            trends.append(
                self.build_trend(TrendPeriod.WEEKLY, SeriesMetric.STUDY_SESSIONS, weekly)
            )

        logger.debug(
            "Trends: "
            + ", ".join(f"{t.period.value}/{t.metric}={t.trend.value}" for t in trends)
        )
        return trends

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def preferred_days(self, sessions: Sequence[Session]) -> list[int]:
        counts = Counter(to_local(s.started_at, self.tz).weekday() for s in sessions)
        return _top_keys(counts, c.TOP_PATTERN_BUCKETS)

    def detect_patterns(self, sessions: Sequence[Session]) -> list[StudyPattern]:
        """
        Detect when the user prefers to study.

        Reports the top hours and weekdays by session count, the share of
        sessions in the single most common hour, and the accuracy of
        completed sessions held inside the preferred hours.
        """
        if not sessions:
            return []

        hour_counts = Counter(local_hour(s.started_at, self.tz) for s in sessions)
        hours = _top_keys(hour_counts, c.TOP_PATTERN_BUCKETS)
        completed = completed_sessions(sessions)

        in_hours = [s for s in completed if local_hour(s.started_at, self.tz) in hours]

        profile = PatternProfile(
            time_of_day=hours,
            days_of_week=self.preferred_days(sessions),
            session_duration=round(mean([s.duration_minutes for s in completed]), 2),
            cards_per_session=round(mean([s.cards_studied for s in sessions]), 2),
        )

        return [
            StudyPattern(
                id=generate_id("pattern"),
                name="Preferred Study Time",
                description="You tend to study most often at "
                + ", ".join(f"{h}:00" for h in hours),
                frequency=hour_counts[hours[0]] / len(sessions),
                pattern=profile,
                effectiveness=PatternEffectiveness(
                    accuracy_score=mean([s.accuracy for s in in_hours]),
                    retention_score=c.PATTERN_RETENTION_SCORE,
                    speed_score=c.PATTERN_SPEED_SCORE,
                ),
                suggestions=list(PATTERN_SUGGESTIONS),
            )
        ]


def _top_keys(counts: Counter, limit: int) -> list[int]:
    """Most frequent keys first; ties go to the smaller key so output is stable."""
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [key for key, _ in ranked[:limit]]
