"""
Insight generator: rule-based qualitative findings.

Each rule looks at the aggregate stats and outcome history independently and
yields at most one Insight. Rules run in a fixed order so the output order is
stable.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from studylens.application.analytics.history import difficult_cards, sessions_since
from studylens.application.id_service import generate_id
from studylens.application.utils.numeric import round_half_up
from studylens.domain import constants as c
from studylens.domain.models import CardOutcome, Session, UserStats
from studylens.domain.report import Insight, InsightMetadata, InsightType, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsightContext:
    """Everything a rule may look at."""

    stats: UserStats | None
    sessions: Sequence[Session]
    outcomes: Sequence[CardOutcome]
    now: datetime


InsightRule = Callable[[InsightContext], Insight | None]


class InsightGenerator:
    """
    Evaluates the insight rules against one user's history.

    Thresholds:
        accuracy_threshold: Lifetime accuracy below this is a weakness.
        streak_days: A current streak at or above this is a strength.
        difficult_accuracy: Per-card accuracy below this marks a card difficult.
        difficult_limit: More difficult cards than this triggers an insight.
        inactivity_days: No sessions in this trailing window is a study break.
    """

    def __init__(
        self,
        accuracy_threshold: float = c.LOW_ACCURACY_THRESHOLD,
        streak_days: int = c.STREAK_INSIGHT_DAYS,
        difficult_accuracy: float = c.DIFFICULT_CARD_ACCURACY,
        difficult_limit: int = c.DIFFICULT_CARD_LIMIT,
        inactivity_days: int = c.INACTIVITY_WINDOW_DAYS,
    ):
        self.accuracy_threshold = accuracy_threshold
        self.streak_days = streak_days
        self.difficult_accuracy = difficult_accuracy
        self.difficult_limit = difficult_limit
        self.inactivity_days = inactivity_days

    @property
    def rules(self) -> list[InsightRule]:
        return [
            self.low_accuracy_rule,
            self.study_streak_rule,
            self.difficult_cards_rule,
            self.study_break_rule,
        ]

    def generate(
        self,
        stats: UserStats | None,
        sessions: Sequence[Session],
        outcomes: Sequence[CardOutcome],
        now: datetime,
    ) -> list[Insight]:
        ctx = InsightContext(stats=stats, sessions=sessions, outcomes=outcomes, now=now)
        insights = []
        for rule in self.rules:
            insight = rule(ctx)
            if insight is not None:
                insights.append(insight)
        logger.debug(f"Generated {len(insights)} insights")
        return insights

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def low_accuracy_rule(self, ctx: InsightContext) -> Insight | None:
        stats = ctx.stats
        if stats is None or stats.total_sessions == 0:
            return None
        if stats.average_accuracy >= self.accuracy_threshold:
            return None

        percent = round_half_up(stats.average_accuracy * 100)
        return Insight(
            id=generate_id("insight"),
            type=InsightType.WEAKNESS,
            title="Low Accuracy Detected",
            description=(
                f"Your overall accuracy is {percent}%. Consider reviewing material "
                "more thoroughly before testing."
            ),
            severity=Severity.HIGH,
            actionable=True,
            metadata=InsightMetadata(confidence=0.9, data_points=len(ctx.sessions)),
            created_at=ctx.now,
        )

    def study_streak_rule(self, ctx: InsightContext) -> Insight | None:
        streak = ctx.stats.current_streak if ctx.stats else 0
        if streak < self.streak_days:
            return None

        return Insight(
            id=generate_id("insight"),
            type=InsightType.STRENGTH,
            title="Excellent Study Streak!",
            description=(
                f"You've maintained a {streak}-day study streak. "
                "Keep up the consistent practice!"
            ),
            severity=Severity.LOW,
            actionable=False,
            metadata=InsightMetadata(confidence=1.0, data_points=streak),
            created_at=ctx.now,
        )

    def difficult_cards_rule(self, ctx: InsightContext) -> Insight | None:
        difficult = difficult_cards(ctx.outcomes, self.difficult_accuracy)
        if len(difficult) <= self.difficult_limit:
            return None

        return Insight(
            id=generate_id("insight"),
            type=InsightType.WEAKNESS,
            title="Multiple Challenging Cards",
            description=(
                f"You have {len(difficult)} cards with low accuracy. "
                "Focus on these for improvement."
            ),
            severity=Severity.MEDIUM,
            actionable=True,
            metadata=InsightMetadata(
                confidence=0.8,
                data_points=len(difficult),
                related_cards=[o.card_id for o in difficult[: c.MAX_RELATED_CARDS]],
                related_sets=sorted({o.set_id for o in difficult}),
            ),
            created_at=ctx.now,
        )

    def study_break_rule(self, ctx: InsightContext) -> Insight | None:
        if sessions_since(ctx.sessions, ctx.now, self.inactivity_days):
            return None

        return Insight(
            id=generate_id("insight"),
            type=InsightType.PATTERN,
            title="Study Break Detected",
            description=(
                f"You haven't studied in the past {self.inactivity_days} days. "
                "Regular practice helps maintain retention."
            ),
            severity=Severity.MEDIUM,
            actionable=True,
            metadata=InsightMetadata(confidence=1.0, data_points=0),
            created_at=ctx.now,
        )
