"""
Analytics Service: application layer orchestrator.

Loads a user's history through the EventStore port and runs the analytics
engines over it to build one AnalyticsReport.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from studylens.application.analytics.comparisons import ComparisonAnalyzer
from studylens.application.analytics.goals import default_goals
from studylens.application.analytics.history import completed_sessions, total_study_minutes
from studylens.application.analytics.insights import InsightGenerator
from studylens.application.analytics.metrics import MetricsCalculator
from studylens.application.analytics.predictions import PredictiveModule
from studylens.application.analytics.recommendations import RecommendationGenerator
from studylens.application.analytics.trends import TrendAnalyzer
from studylens.application.scoring import ScoringEngine
from studylens.application.utils.numeric import mean, round_half_up
from studylens.application.utils.timeutil import ensure_utc, utcnow
from studylens.domain.models import LearningGoal, Session, UserStats
from studylens.domain.ports import EventStore
from studylens.domain.report import AnalyticsReport, ReportSummary

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Builds dashboards for users.

    Follows Dependency Inversion: depends on the EventStore abstraction, not
    on a concrete adapter. Every engine is optional and defaults to its
    standard configuration.
    """

    def __init__(
        self,
        store: EventStore,
        scoring: ScoringEngine | None = None,
        trends: TrendAnalyzer | None = None,
        metrics: MetricsCalculator | None = None,
        insights: InsightGenerator | None = None,
        predictions: PredictiveModule | None = None,
        recommendations: RecommendationGenerator | None = None,
        comparisons: ComparisonAnalyzer | None = None,
    ):
        self._store = store
        self._scoring = scoring or ScoringEngine()
        self._trends = trends or TrendAnalyzer()
        self._metrics = metrics or MetricsCalculator(tz=self._trends.tz, trends=self._trends)
        self._insights = insights or InsightGenerator()
        self._predictions = predictions or PredictiveModule(tz=self._trends.tz)
        self._recommendations = recommendations or RecommendationGenerator(
            predictor=self._predictions
        )
        self._comparisons = comparisons or ComparisonAnalyzer()

    def generate_dashboard(self, user_id: str, now: datetime | None = None) -> AnalyticsReport:
        """
        Load the user's history and build a fresh report.

        Store errors are not caught; they reach the caller unchanged.

        Args:
            user_id: The user to report on.
            now: Reference time for every window and date in the report.
                Defaults to the current UTC time.
        """
        now = ensure_utc(now or utcnow())

        sessions = self._store.load_sessions(user_id)
        outcomes = self._store.load_card_outcomes(user_id)
        stats = self._store.load_user_stats(user_id)
        stored_goals = self._store.load_goals(user_id)

        logger.debug(
            f"Generating dashboard for {user_id}: {len(sessions)} sessions, "
            f"{len(outcomes)} outcomes, stats={'yes' if stats else 'no'}"
        )

        summary = self.build_summary(stats, sessions)
        insights = self._insights.generate(stats, sessions, outcomes, now)
        metrics = self._metrics.calculate(sessions, outcomes, now)
        patterns = self._trends.detect_patterns(sessions)
        goals = self.resolve_goals(stored_goals, now)
        recommendations = self._recommendations.generate(stats, sessions, outcomes, now)
        trends = self._trends.calculate_trends(sessions, now)
        predictions = self._predictions.predict(outcomes, sessions, now)
        comparisons = self._comparisons.compare(stats, sessions, now)

        return AnalyticsReport(
            user_id=user_id,
            generated_at=now,
            summary=summary,
            insights=insights,
            metrics=metrics,
            patterns=patterns,
            goals=goals,
            recommendations=recommendations,
            trends=trends,
            predictions=predictions,
            comparisons=comparisons,
        )

    def build_summary(
        self, stats: UserStats | None, sessions: Sequence[Session]
    ) -> ReportSummary:
        completed = completed_sessions(sessions)
        total_score = stats.total_score if stats else 0
        return ReportSummary(
            total_study_time=round_half_up(total_study_minutes(completed)),
            cards_studied=(
                stats.total_cards_studied
                if stats
                else sum(s.cards_studied for s in completed)
            ),
            sets_completed=len({s.set_id for s in completed}),
            sessions_completed=len(completed),
            current_streak=stats.current_streak if stats else 0,
            overall_accuracy=(
                stats.average_accuracy if stats else mean([s.accuracy for s in completed])
            ),
            total_score=total_score,
            level=self._scoring.user_level(total_score),
        )

    def resolve_goals(self, goals: list[LearningGoal], now: datetime) -> list[LearningGoal]:
        """Stored goals pass through untouched; users without any get the defaults."""
        if goals:
            return list(goals)
        return default_goals(now)
