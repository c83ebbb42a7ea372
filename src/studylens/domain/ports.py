"""
Ports (interfaces) for study history storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import CardOutcome, LearningGoal, Session, UserStats


class EventStore(ABC):
    """
    Port for loading and saving a user's study history.

    Implementations:
        - InMemoryEventStore: dict-backed, for tests and embedded hosts.
        - FileEventStore: one YAML document per user on disk.

    Errors raised by implementations propagate to callers unchanged.
    """

    @abstractmethod
    def load_sessions(self, user_id: str) -> list[Session]:
        """
        Fetch every session for the user.

        Returns:
            Sessions ordered by started_at ascending.
        """

    @abstractmethod
    def load_card_outcomes(self, user_id: str) -> list[CardOutcome]:
        """Fetch every stored card outcome for the user."""

    @abstractmethod
    def load_user_stats(self, user_id: str) -> UserStats | None:
        """Fetch the lifetime stats record, or None before the first session."""

    @abstractmethod
    def load_goals(self, user_id: str) -> list[LearningGoal]:
        """Fetch the user's learning goals (empty if none were saved)."""

    @abstractmethod
    def save_user_stats(self, stats: UserStats) -> None:
        pass

    @abstractmethod
    def save_session(self, session: Session) -> None:
        """Insert or replace a session by id. session.user_id must be set."""

    @abstractmethod
    def save_card_outcomes(self, user_id: str, outcomes: list[CardOutcome]) -> None:
        """Append outcomes to the user's history."""

    @abstractmethod
    def save_goals(self, user_id: str, goals: list[LearningGoal]) -> None:
        pass

    @abstractmethod
    def delete_card_outcomes_before(self, user_id: str, cutoff: datetime) -> int:
        """
        Delete outcomes whose last_reviewed is older than cutoff.

        Returns:
            Number of outcomes deleted.
        """
