from datetime import datetime, timedelta

import pytest

from triagebot.decision.repo import get_decision_state, insert_decision_state
from triagebot.decision.types import Resolution, UserStatus
from triagebot.errors import DecisionStateExists, StorageError

START = datetime(2026, 10, 19, 12, 0, 0)


def _insert(database_url, issue_id=7, initiator="carol"):
    vote = UserStatus("https://github.com/o/r/pull/7#issuecomment-1", "ship it", Resolution.MERGE)
    return insert_decision_state(
        database_url,
        issue_id=issue_id,
        initiator=initiator,
        start_time=START,
        end_time=START + timedelta(days=10),
        current={"alice": None, "carol": vote},
        history={"alice": [], "carol": []},
    )


def test_get_missing_state(database_url):
    assert get_decision_state(database_url, 7) is None


def test_insert_and_get(database_url):
    _insert(database_url)

    state = get_decision_state(database_url, 7)
    assert state.initiator == "carol"
    assert state.end_time - state.start_time == timedelta(days=10)
    assert state.current["alice"] is None
    assert state.current["carol"].resolution is Resolution.MERGE
    assert state.current["carol"].rationale == "ship it"
    assert state.history == {"alice": [], "carol": []}
    assert list(state.current) == ["alice", "carol"]


def test_second_ballot_for_issue_is_rejected_by_storage(database_url):
    _insert(database_url)
    with pytest.raises(DecisionStateExists):
        _insert(database_url, initiator="alice")

    assert get_decision_state(database_url, 7).initiator == "carol"


def test_ballots_are_per_issue(database_url):
    _insert(database_url, issue_id=7)
    _insert(database_url, issue_id=8)
    assert get_decision_state(database_url, 8) is not None


def test_state_to_dict(database_url):
    state = _insert(database_url)
    data = state.to_dict()
    assert data["current"]["carol"]["resolution"] == "merge"
    assert data["current"]["alice"] is None
    assert data["start_time"] == "2026-10-19T12:00:00Z"


def test_other_constraint_failures_are_not_reported_as_existing_ballot(database_url):
    with pytest.raises(StorageError) as excinfo:
        insert_decision_state(
            database_url,
            issue_id=7,
            initiator="carol",
            start_time=None,
            end_time=START,
            current={},
            history={},
        )

    assert not isinstance(excinfo.value, DecisionStateExists)
    assert get_decision_state(database_url, 7) is None
