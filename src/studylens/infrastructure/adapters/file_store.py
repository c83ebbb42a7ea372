"""
File EventStore: one YAML document per user under a data directory.

Document layout:

    user_id: alice
    user_stats: {...} | null
    sessions: [...]
    card_outcomes: [...]
    goals: [...]

Writes go to a temporary file in the same directory which is then renamed
over the existing file, so a crash never leaves a half-written document.
"""

import logging
import os
import re
import tempfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import yaml

from studylens.application.serialization import load, load_user_stats, to_jsonable
from studylens.application.utils.timeutil import ensure_utc
from studylens.domain.exceptions import EventStoreError, StudylensError
from studylens.domain.models import CardOutcome, LearningGoal, Session, UserStats
from studylens.domain.ports import EventStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_ID_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.@-]*$")
SECTIONS = ("sessions", "card_outcomes", "goals")


class FileEventStore(EventStore):
    """
    Persists each user's history as `<data_dir>/<user_id>.yaml`.

    Unreadable documents raise EventStoreError. Individual records that fail
    validation are skipped with a warning so one bad entry does not hide the
    rest of the history.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def _path(self, user_id: str) -> Path:
        if not USER_ID_RE.match(user_id):
            raise EventStoreError(f"Invalid user id for file storage: {user_id!r}")
        return self.data_dir / f"{user_id}.yaml"

    def _read(self, user_id: str) -> dict[str, Any]:
        path = self._path(user_id)
        if not path.exists():
            return {}
        try:
            doc = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise EventStoreError(f"Could not read {path}: {e}") from e

        if not isinstance(doc, dict):
            raise EventStoreError(f"{path} must contain a mapping, got {type(doc).__name__}")
        for section in SECTIONS:
            if not isinstance(doc.get(section) or [], list):
                raise EventStoreError(f"{path}: '{section}' must be a list")
        return doc

    def _write(self, user_id: str, doc: dict[str, Any]) -> None:
        path = self._path(user_id)
        doc["user_id"] = user_id
        text = yaml.safe_dump(
            doc, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=f".{user_id}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise EventStoreError(f"Could not write {path}: {e}") from e

    def _records(self, user_id: str, section: str, tp: type[T]) -> list[T]:
        return self._parse_records(self._read(user_id), section, lambda item: load(tp, item))

    @staticmethod
    def _parse_records(doc: dict[str, Any], section: str, parse: Callable[[Any], T]) -> list[T]:
        records = []
        for index, item in enumerate(doc.get(section) or []):
            try:
                records.append(parse(item))
            except StudylensError as e:
                logger.warning(f"Skipping malformed {section}[{index}]: {e}")
        return records

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    def load_sessions(self, user_id: str) -> list[Session]:
        sessions = self._records(user_id, "sessions", Session)
        return sorted(sessions, key=lambda s: ensure_utc(s.started_at))

    def load_card_outcomes(self, user_id: str) -> list[CardOutcome]:
        return self._records(user_id, "card_outcomes", CardOutcome)

    def load_user_stats(self, user_id: str) -> UserStats | None:
        doc = self._read(user_id)
        try:
            return load_user_stats(doc.get("user_stats"))
        except StudylensError as e:
            raise EventStoreError(f"Invalid user_stats for {user_id}: {e}") from e

    def load_goals(self, user_id: str) -> list[LearningGoal]:
        return self._records(user_id, "goals", LearningGoal)

    # ------------------------------------------------------------------
    # Saves
    # ------------------------------------------------------------------

    def save_user_stats(self, stats: UserStats) -> None:
        doc = self._read(stats.user_id)
        doc["user_stats"] = to_jsonable(stats)
        self._write(stats.user_id, doc)

    def save_session(self, session: Session) -> None:
        if not session.user_id:
            raise EventStoreError(f"Session {session.id} has no user_id")
        doc = self._read(session.user_id)
        sessions = [
            s
            for s in doc.get("sessions") or []
            if not (isinstance(s, dict) and s.get("id") == session.id)
        ]
        sessions.append(to_jsonable(session))
        doc["sessions"] = sessions
        self._write(session.user_id, doc)

    def save_card_outcomes(self, user_id: str, outcomes: list[CardOutcome]) -> None:
        if not outcomes:
            return
        doc = self._read(user_id)
        doc["card_outcomes"] = list(doc.get("card_outcomes") or []) + to_jsonable(list(outcomes))
        self._write(user_id, doc)

    def save_goals(self, user_id: str, goals: list[LearningGoal]) -> None:
        doc = self._read(user_id)
        doc["goals"] = to_jsonable(list(goals))
        self._write(user_id, doc)

    def delete_card_outcomes_before(self, user_id: str, cutoff: datetime) -> int:
        doc = self._read(user_id)
        raw = doc.get("card_outcomes") or []
        if not raw:
            return 0

        cutoff = ensure_utc(cutoff)
        kept = []
        for item in raw:
            try:
                outcome = load(CardOutcome, item)
            except StudylensError:
                # Malformed entries are left for a human to inspect
                kept.append(item)
                continue
            if ensure_utc(outcome.last_reviewed) >= cutoff:
                kept.append(item)

        removed = len(raw) - len(kept)
        if removed:
            doc["card_outcomes"] = kept
            self._write(user_id, doc)
        return removed
