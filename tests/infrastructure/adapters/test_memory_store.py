from datetime import timedelta

import pytest

from factories import NOW, make_outcome, make_session, make_stats


def test_empty_user(store):
    assert store.load_sessions("nobody") == []
    assert store.load_card_outcomes("nobody") == []
    assert store.load_user_stats("nobody") is None
    assert store.load_goals("nobody") == []
    assert store.delete_card_outcomes_before("nobody", NOW) == 0


def test_sessions_are_upserted_and_ordered(store):
    store.save_session(make_session(1, session_id="late"))
    store.save_session(make_session(3, session_id="early"))
    store.save_session(make_session(1, session_id="late", accuracy=0.1))

    sessions = store.load_sessions("alice")

    assert [s.id for s in sessions] == ["early", "late"]
    assert sessions[1].accuracy == 0.1


def test_session_needs_user(store):
    with pytest.raises(ValueError):
        store.save_session(make_session(user_id=None))


def test_outcomes_append_and_prune(store):
    store.save_card_outcomes("alice", [make_outcome("a", days_ago=40)])
    store.save_card_outcomes("alice", [make_outcome("b", days_ago=1)])

    assert store.delete_card_outcomes_before("alice", NOW - timedelta(days=30)) == 1
    assert [o.card_id for o in store.load_card_outcomes("alice")] == ["b"]


def test_stats_keyed_by_user(store):
    store.save_user_stats(make_stats(user_id="bob", total_score=9))
    assert store.load_user_stats("bob").total_score == 9
    assert store.load_user_stats("alice") is None
