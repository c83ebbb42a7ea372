from datetime import timedelta

import pytest
import yaml

from factories import NOW, make_outcome, make_session, make_stats
from studylens.application.analytics.goals import default_goals
from studylens.domain.exceptions import EventStoreError
from studylens.domain.models import StudyMode, UserLevel
from studylens.infrastructure.adapters.file_store import FileEventStore


@pytest.fixture
def file_store(tmp_path):
    return FileEventStore(data_dir=tmp_path / "data")


def test_missing_document_is_empty(file_store):
    assert file_store.load_sessions("alice") == []
    assert file_store.load_user_stats("alice") is None
    assert file_store.load_goals("alice") == []


def test_history_survives_a_new_instance(file_store, tmp_path):
    file_store.save_session(make_session(2, session_id="a", mode=StudyMode.TEST))
    file_store.save_session(make_session(1, session_id="b"))
    file_store.save_user_stats(make_stats(total_score=150, level=UserLevel.INTERMEDIATE))
    file_store.save_card_outcomes("alice", [make_outcome("c1", attempts=3, correct=2)])
    file_store.save_goals("alice", default_goals(NOW))

    reopened = FileEventStore(data_dir=tmp_path / "data")

    sessions = reopened.load_sessions("alice")
    assert [s.id for s in sessions] == ["a", "b"]
    assert sessions[0].mode == StudyMode.TEST
    assert sessions[0].started_at == NOW - timedelta(days=2)
    assert reopened.load_user_stats("alice").level == UserLevel.INTERMEDIATE
    assert reopened.load_card_outcomes("alice")[0].correct_attempts == 2
    assert [g.title for g in reopened.load_goals("alice")] == [
        "Achieve 80% Accuracy",
        "7-Day Study Streak",
    ]


def test_document_layout(file_store, tmp_path):
    file_store.save_session(make_session(1, session_id="a"))

    doc = yaml.safe_load((tmp_path / "data" / "alice.yaml").read_text())

    assert doc["user_id"] == "alice"
    assert doc["sessions"][0]["id"] == "a"
    assert doc["sessions"][0]["mode"] == "FLASHCARD"
    assert list((tmp_path / "data").glob("*.tmp")) == []


def test_save_session_replaces_by_id(file_store):
    file_store.save_session(make_session(1, session_id="a", accuracy=0.2))
    file_store.save_session(make_session(1, session_id="a", accuracy=0.9))

    [session] = file_store.load_sessions("alice")
    assert session.accuracy == 0.9


def test_delete_card_outcomes_before(file_store):
    file_store.save_card_outcomes(
        "alice",
        [make_outcome("old", days_ago=100), make_outcome("new", days_ago=2)],
    )

    assert file_store.delete_card_outcomes_before("alice", NOW - timedelta(days=30)) == 1
    assert [o.card_id for o in file_store.load_card_outcomes("alice")] == ["new"]
    assert file_store.delete_card_outcomes_before("alice", NOW - timedelta(days=30)) == 0


def test_corrupt_document_raises(file_store, tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "alice.yaml").write_text("sessions: [unclosed\n")

    with pytest.raises(EventStoreError):
        file_store.load_sessions("alice")


def test_non_mapping_document_raises(file_store, tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "alice.yaml").write_text("- just\n- a list\n")

    with pytest.raises(EventStoreError, match="mapping"):
        file_store.load_card_outcomes("alice")


def test_malformed_records_are_skipped(file_store, tmp_path, caplog):
    file_store.save_session(make_session(1, session_id="good"))
    path = tmp_path / "data" / "alice.yaml"
    doc = yaml.safe_load(path.read_text())
    doc["sessions"].append({"id": "bad", "mode": "DANCING"})
    path.write_text(yaml.safe_dump(doc))

    sessions = file_store.load_sessions("alice")

    assert [s.id for s in sessions] == ["good"]
    assert "Skipping malformed sessions[1]" in caplog.text


def test_invalid_stats_raise(file_store, tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "alice.yaml").write_text("user_stats:\n  total_score: lots\n")

    with pytest.raises(EventStoreError):
        file_store.load_user_stats("alice")


@pytest.mark.parametrize("user_id", ["../etc/passwd", "a/b", "", ".hidden"])
def test_unsafe_user_ids_are_rejected(file_store, user_id):
    with pytest.raises(EventStoreError, match="Invalid user id"):
        file_store.load_sessions(user_id)
