"""Default learning goals for users who have not set any."""

from datetime import datetime

from studylens.application.id_service import generate_id
from studylens.domain.models import GoalTarget, GoalType, LearningGoal


def default_goals(now: datetime) -> list[LearningGoal]:
    return [
        LearningGoal(
            id=generate_id("goal"),
            title="Achieve 80% Accuracy",
            description="Maintain 80% or higher accuracy across all study sessions",
            type=GoalType.ACCURACY,
            target=GoalTarget(value=80, unit="%"),
            created_at=now,
        ),
        LearningGoal(
            id=generate_id("goal"),
            title="7-Day Study Streak",
            description="Study for 7 consecutive days",
            type=GoalType.STREAK,
            target=GoalTarget(value=7, unit="days"),
            created_at=now,
        ),
    ]
