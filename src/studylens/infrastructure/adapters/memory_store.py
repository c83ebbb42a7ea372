"""
In-memory EventStore: dict-backed history for tests and embedded hosts.

Nothing is persisted; the store lives as long as the process.
"""

import logging
from collections import defaultdict
from datetime import datetime

from studylens.application.utils.timeutil import ensure_utc
from studylens.domain.models import CardOutcome, LearningGoal, Session, UserStats
from studylens.domain.ports import EventStore

logger = logging.getLogger(__name__)


class InMemoryEventStore(EventStore):
    def __init__(self):
        self._sessions: dict[str, dict[str, Session]] = defaultdict(dict)
        self._outcomes: dict[str, list[CardOutcome]] = defaultdict(list)
        self._stats: dict[str, UserStats] = {}
        self._goals: dict[str, list[LearningGoal]] = {}

    def load_sessions(self, user_id: str) -> list[Session]:
        sessions = self._sessions.get(user_id, {}).values()
        return sorted(sessions, key=lambda s: ensure_utc(s.started_at))

    def load_card_outcomes(self, user_id: str) -> list[CardOutcome]:
        return list(self._outcomes.get(user_id, []))

    def load_user_stats(self, user_id: str) -> UserStats | None:
        return self._stats.get(user_id)

    def load_goals(self, user_id: str) -> list[LearningGoal]:
        return list(self._goals.get(user_id, []))

    def save_user_stats(self, stats: UserStats) -> None:
        self._stats[stats.user_id] = stats

    def save_session(self, session: Session) -> None:
        if not session.user_id:
            raise ValueError(f"Session {session.id} has no user_id")
        self._sessions[session.user_id][session.id] = session

    def save_card_outcomes(self, user_id: str, outcomes: list[CardOutcome]) -> None:
        self._outcomes[user_id].extend(outcomes)

    def save_goals(self, user_id: str, goals: list[LearningGoal]) -> None:
        self._goals[user_id] = list(goals)

    def delete_card_outcomes_before(self, user_id: str, cutoff: datetime) -> int:
        cutoff = ensure_utc(cutoff)
        kept = [
            o for o in self._outcomes.get(user_id, []) if ensure_utc(o.last_reviewed) >= cutoff
        ]
        removed = len(self._outcomes.get(user_id, [])) - len(kept)
        if user_id in self._outcomes:
            self._outcomes[user_id] = kept
        return removed
