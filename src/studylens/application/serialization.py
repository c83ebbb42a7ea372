"""
Conversion between domain dataclasses and plain JSON-compatible data.

Uses pydantic TypeAdapters over the stdlib dataclasses, so the domain layer
stays free of pydantic while adapters and outer surfaces get validation.
"""

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from studylens.domain.exceptions import StudylensError
from studylens.domain.models import AnswerEvent, CardOutcome, LearningGoal, Session, UserStats

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def to_jsonable(obj: Any) -> Any:
    """Dump a dataclass (or a list of them) to JSON-compatible Python data."""
    if isinstance(obj, list):
        return [to_jsonable(item) for item in obj]
    return _adapter(type(obj)).dump_python(obj, mode="json")


def load(tp: type[T], data: Any) -> T:
    """
    Validate plain data into a domain dataclass.

    Raises:
        StudylensError: If the data does not match the type.
    """
    try:
        return _adapter(tp).validate_python(data)
    except ValidationError as e:
        raise StudylensError(f"Invalid {tp.__name__}: {e}") from e


def load_many(tp: type[T], items: Any) -> list[T]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise StudylensError(f"Expected a list of {tp.__name__}, got {type(items).__name__}")
    return [load(tp, item) for item in items]


def load_sessions(items: Any) -> list[Session]:
    return load_many(Session, items)


def load_card_outcomes(items: Any) -> list[CardOutcome]:
    return load_many(CardOutcome, items)


def load_goals(items: Any) -> list[LearningGoal]:
    return load_many(LearningGoal, items)


def load_answers(items: Any) -> list[AnswerEvent]:
    return load_many(AnswerEvent, items)


def load_user_stats(data: Any) -> UserStats | None:
    if data is None:
        return None
    return load(UserStats, data)
